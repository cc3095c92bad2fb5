"""
SPORTS.PY - Single Source of Truth for League Constants

This module provides:
1. League enum for type-safe league references
2. LEAGUE_PROFILES capability table (base score, home advantage, weather model)
3. resolve_league() for lenient parsing of collaborator strings

Usage:
    from core.sports import League, get_league_profile, resolve_league

    league = resolve_league("nba")           # League.NBA
    profile = get_league_profile(league)
    profile.base_score                        # 110.0
    profile.weather_model                     # WeatherModel.INDOOR
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Set


class League(str, Enum):
    """
    Canonical league enum - single source of truth.

    Inherits from str for JSON serialization compatibility.
    Use League.NBA.value to get "NBA" string.
    """
    NBA = "NBA"
    NFL = "NFL"
    MLB = "MLB"
    NHL = "NHL"
    NCAAF = "NCAAF"
    NCAAB = "NCAAB"
    WNBA = "WNBA"
    SOCCER = "SOCCER"
    EPL = "EPL"
    LA_LIGA = "LA_LIGA"
    SERIE_A = "SERIE_A"
    BUNDESLIGA = "BUNDESLIGA"
    LIGUE_1 = "LIGUE_1"
    MLS = "MLS"
    OTHER = "OTHER"


class WeatherModel(str, Enum):
    """Which weather scoring path a league uses."""
    INDOOR = "indoor"
    FOOTBALL = "football"
    BASEBALL = "baseball"
    SOCCER = "soccer"
    GENERIC = "generic"


@dataclass(frozen=True)
class LeagueProfile:
    """
    Sport-specific capabilities, resolved once per match.

    Attributes:
        base_score: Neutral projected points per side
        score_precision: Decimal places for projected scores
        home_advantage: Base home-advantage confidence points
        weather_model: Weather scoring path
        efficiency_adjustment: Market-efficiency constant (Value Pick Finder)
        power_index_adjustment: League calibration constant (ML Power Index)
        pace_sensitive: Whether pace differential matters (Statistical Edge)
        momentum_multiplier: Smart-score momentum scaling
    """
    base_score: float
    score_precision: int = 0
    home_advantage: float = 2.0
    weather_model: WeatherModel = WeatherModel.GENERIC
    efficiency_adjustment: float = 0.0
    power_index_adjustment: float = 0.0
    pace_sensitive: bool = False
    momentum_multiplier: float = 1.0


_SOCCER_PROFILE = LeagueProfile(
    base_score=1.3,
    score_precision=1,
    home_advantage=3.0,
    weather_model=WeatherModel.SOCCER,
)

LEAGUE_PROFILES: Dict[League, LeagueProfile] = {
    League.NBA: LeagueProfile(
        base_score=110.0,
        home_advantage=2.0,
        weather_model=WeatherModel.INDOOR,
        efficiency_adjustment=-1.0,
        power_index_adjustment=2.0,
        pace_sensitive=True,
        momentum_multiplier=1.1,
    ),
    League.NFL: LeagueProfile(
        base_score=22.0,
        home_advantage=2.5,
        weather_model=WeatherModel.FOOTBALL,
        efficiency_adjustment=-2.0,
        power_index_adjustment=1.0,
    ),
    League.MLB: LeagueProfile(
        base_score=4.5,
        home_advantage=1.0,
        weather_model=WeatherModel.BASEBALL,
        efficiency_adjustment=1.0,
        power_index_adjustment=-3.0,
    ),
    League.NHL: LeagueProfile(
        base_score=2.8,
        score_precision=1,
        home_advantage=1.8,
        weather_model=WeatherModel.INDOOR,
        efficiency_adjustment=3.0,
        power_index_adjustment=-2.0,
        momentum_multiplier=1.1,
    ),
    League.NCAAF: LeagueProfile(
        base_score=24.0,
        weather_model=WeatherModel.FOOTBALL,
        efficiency_adjustment=2.0,
    ),
    League.NCAAB: LeagueProfile(
        base_score=72.0,
        weather_model=WeatherModel.INDOOR,
        efficiency_adjustment=2.0,
        pace_sensitive=True,
    ),
    League.WNBA: LeagueProfile(
        base_score=82.0,
        weather_model=WeatherModel.INDOOR,
    ),
    League.SOCCER: _SOCCER_PROFILE,
    League.EPL: _SOCCER_PROFILE,
    League.LA_LIGA: _SOCCER_PROFILE,
    League.SERIE_A: _SOCCER_PROFILE,
    League.BUNDESLIGA: _SOCCER_PROFILE,
    League.LIGUE_1: _SOCCER_PROFILE,
    League.MLS: _SOCCER_PROFILE,
    League.OTHER: LeagueProfile(base_score=2.0),
}

SOCCER_LEAGUES: Set[League] = {
    league for league, profile in LEAGUE_PROFILES.items()
    if profile.weather_model is WeatherModel.SOCCER
}

# List of all supported leagues (for iteration)
SUPPORTED_LEAGUES: List[str] = [league.value for league in League if league is not League.OTHER]

# Collaborator spellings that are not enum values
LEAGUE_ALIASES: Dict[str, League] = {
    "LALIGA": League.LA_LIGA,
    "LA LIGA": League.LA_LIGA,
    "SERIEA": League.SERIE_A,
    "SERIE A": League.SERIE_A,
    "LIGUE1": League.LIGUE_1,
    "LIGUE 1": League.LIGUE_1,
    "PREMIER_LEAGUE": League.EPL,
    "FOOTBALL": League.SOCCER,
    "CFB": League.NCAAF,
    "CBB": League.NCAAB,
}


def resolve_league(value) -> League:
    """
    Normalize a league tag to the enum, falling back to League.OTHER.

    Unknown strings never raise here; use validate_league() when the caller
    needs to reject them.
    """
    if isinstance(value, League):
        return value
    if not value:
        return League.OTHER
    key = str(value).strip().upper()
    try:
        return League(key)
    except ValueError:
        return LEAGUE_ALIASES.get(key, League.OTHER)


def validate_league(value: str) -> League:
    """
    Validate and normalize league string to enum.

    Raises:
        ValueError: If league is not recognised

    Example:
        >>> validate_league("nhl")
        League.NHL
    """
    league = resolve_league(value)
    if league is League.OTHER:
        raise ValueError(f"Invalid league: {value}. Valid: {SUPPORTED_LEAGUES}")
    return league


def get_league_profile(league) -> LeagueProfile:
    """Capability lookup; accepts enum or raw string."""
    return LEAGUE_PROFILES[resolve_league(league)]


def is_indoor_league(league) -> bool:
    return get_league_profile(league).weather_model is WeatherModel.INDOOR


def is_soccer_league(league) -> bool:
    return resolve_league(league) in SOCCER_LEAGUES


__all__ = [
    'League',
    'WeatherModel',
    'LeagueProfile',
    'LEAGUE_PROFILES',
    'SOCCER_LEAGUES',
    'SUPPORTED_LEAGUES',
    'LEAGUE_ALIASES',
    'resolve_league',
    'validate_league',
    'get_league_profile',
    'is_indoor_league',
    'is_soccer_league',
]
