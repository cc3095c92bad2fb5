"""
Match Schema
============
Single source of truth for every record that crosses the engine boundary.

Inputs (produced by ingestion collaborators, read-only to the engine):
- Team, Sportsbook, LiveOdds, Odds, HeadToHead, WeatherReport, PlayerInjury, Match

Annotations (produced by the engine, read-only to the UI):
- Prediction, SmartScore, AlgorithmValidation, ArbitrageOpportunity

All models are frozen. The engine never mutates a Match; it returns a new one
via engine.annotation.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.sports import League, resolve_league

# =============================================================================
# ENUMS
# =============================================================================


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    PRE = "pre"
    LIVE = "live"
    FINISHED = "finished"


class Side(str, Enum):
    HOME = "home"
    AWAY = "away"
    DRAW = "draw"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationStrength(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    NEUTRAL = "neutral"
    AVOID = "avoid"


class AgreementLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    CONFLICTED = "conflicted"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# INPUT RECORDS
# =============================================================================


class Team(_Frozen):
    """A side in a match. recent_form is most-recent first."""
    id: str
    name: str
    short_name: str = ""
    logo: Optional[str] = None
    record: Optional[str] = Field(None, description='"W-L" or "W-L-T"')
    recent_form: Tuple[str, ...] = ()
    stats: Dict[str, float] = Field(default_factory=dict)

    @field_validator("recent_form", mode="before")
    @classmethod
    def normalize_form(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            v = list(v.replace("-", "").replace(",", "").replace(" ", ""))
        return tuple(str(r).upper()[:1] for r in v if str(r).upper()[:1] in ("W", "L", "D"))

    @property
    def display_name(self) -> str:
        return self.short_name or self.name


class Sportsbook(_Frozen):
    id: str
    name: str
    logo: Optional[str] = None
    is_available: bool = True


class LiveOdds(_Frozen):
    """One quote from one book at one point in time (decimal prices)."""
    home_win: float = Field(gt=1.0)
    away_win: float = Field(gt=1.0)
    draw: Optional[float] = Field(None, gt=1.0)
    updated_at: datetime
    sportsbook: Sportsbook
    spread: Optional[float] = None
    totals: Optional[float] = None


class Odds(_Frozen):
    home_win: Optional[float] = Field(None, gt=1.0)
    away_win: Optional[float] = Field(None, gt=1.0)
    draw: Optional[float] = Field(None, gt=1.0)
    live_odds: Tuple[LiveOdds, ...] = ()

    @property
    def has_prices(self) -> bool:
        return self.home_win is not None and self.away_win is not None

    def price_for(self, side: "Side") -> Optional[float]:
        if side == Side.HOME:
            return self.home_win
        if side == Side.AWAY:
            return self.away_win
        return self.draw


class HeadToHead(_Frozen):
    home_wins: int = Field(0, ge=0)
    away_wins: int = Field(0, ge=0)
    total_games: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_totals(self):
        if self.home_wins + self.away_wins > self.total_games:
            raise ValueError("head-to-head wins exceed total games")
        return self


class WeatherReport(_Frozen):
    """Already-parsed weather for the venue at start time."""
    temperature_f: Optional[float] = None
    wind_mph: Optional[float] = Field(None, ge=0)
    humidity: Optional[float] = Field(None, ge=0, le=100)
    conditions: str = ""
    is_dome: bool = False


class PlayerInjury(_Frozen):
    player_name: str
    team: str
    position: str = "Unknown"
    status: str = "questionable"


class Score(_Frozen):
    home: float = Field(ge=0)
    away: float = Field(ge=0)


# =============================================================================
# ANNOTATIONS
# =============================================================================


class ProjectedScore(_Frozen):
    home: float = Field(ge=0)
    away: float = Field(ge=0)


class CalibrationMeta(_Frozen):
    multiplier: float = 1.0
    is_paused: bool = False
    meets_threshold: bool = True
    is_calibrated: bool = False


class AnalysisFactor(_Frozen):
    name: str
    impact: float
    description: str
    favored_team: Optional[str] = None


class Prediction(_Frozen):
    recommended: Side
    confidence: float = Field(ge=0, le=100)
    raw_confidence: Optional[float] = None
    algorithm_id: Optional[str] = None
    calibration: Optional[CalibrationMeta] = None
    expected_value: Optional[float] = None
    ev_percentage: Optional[float] = None
    true_probability: Optional[float] = Field(None, ge=0, le=1)
    kelly_fraction: Optional[float] = None
    projected_score: Optional[ProjectedScore] = None
    reasoning: Tuple[str, ...] = ()

    # Statistical Edge detail
    analysis_factors: Tuple[AnalysisFactor, ...] = ()
    key_factors: Tuple[AnalysisFactor, ...] = ()
    detailed_reasoning: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    warning_flags: Tuple[str, ...] = ()


class SmartScoreComponents(_Frozen):
    momentum: float = Field(ge=0, le=100)
    value: float = Field(ge=0, le=100)
    odds_movement: float = Field(ge=0, le=100)
    weather: float = Field(ge=0, le=100)
    injuries: float = Field(ge=0, le=100)
    arbitrage: float = Field(ge=0, le=100)


class SmartScoreRecommendation(_Frozen):
    bet_on: Optional[Side] = Field(None, description="None when there is no pick or the verdict is avoid")
    strength: RecommendationStrength
    confidence: str = Field(description="high / medium / low")
    reasoning: str


class SmartScore(_Frozen):
    overall: float = Field(ge=0, le=100)
    components: SmartScoreComponents
    factors: Dict[str, List[str]] = Field(default_factory=dict)
    recommendation: SmartScoreRecommendation
    has_arbitrage_opportunity: bool = False


class AlgorithmValidation(_Frozen):
    primary_pick: Side
    algorithm_picks: Dict[str, Side] = Field(default_factory=dict)
    matches: int = 0
    total: int = 3
    agreement_rate: float = Field(0.0, ge=0, le=1)
    agreement_level: AgreementLevel = AgreementLevel.CONFLICTED
    consensus_score: int = Field(0, ge=0, le=100)


class BestPrice(_Frozen):
    odds: float
    sportsbook: str


class ArbitrageOpportunity(_Frozen):
    match_id: Optional[str] = None
    best_home: Optional[BestPrice] = None
    best_away: Optional[BestPrice] = None
    best_draw: Optional[BestPrice] = None
    arbitrage_percentage: float = 0.0
    potential_profit: float = 0.0
    sportsbooks: Tuple[str, ...] = ()
    stake_percentages: Dict[str, float] = Field(default_factory=dict)
    has_opportunity: bool = False
    is_premium: bool = False
    insufficient_data: bool = False

    @property
    def is_three_way(self) -> bool:
        return self.best_draw is not None


# =============================================================================
# MATCH
# =============================================================================


class Match(_Frozen):
    id: str
    home_team: Team
    away_team: Team
    league: League = League.OTHER
    start_time: Optional[datetime] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    odds: Odds = Field(default_factory=Odds)
    score: Optional[Score] = None
    venue: Optional[str] = None
    weather: Optional[WeatherReport] = None
    historical_home_win_pct: Optional[float] = Field(None, ge=0, le=1)
    head_to_head: Optional[HeadToHead] = None
    injuries: Tuple[PlayerInjury, ...] = ()

    prediction: Optional[Prediction] = None
    smart_score: Optional[SmartScore] = None
    algorithm_validation: Optional[AlgorithmValidation] = None

    @field_validator("league", mode="before")
    @classmethod
    def normalize_league(cls, v):
        return resolve_league(v)

    @property
    def title(self) -> str:
        return f"{self.away_team.name} @ {self.home_team.name}"

    def team_for(self, side: Side) -> Optional[Team]:
        if side == Side.HOME:
            return self.home_team
        if side == Side.AWAY:
            return self.away_team
        return None
