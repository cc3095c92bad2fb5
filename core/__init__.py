"""
Core module - League table, bounds, logging and storage primitives
"""

from .invariants import (
    # Confidence bounds
    NEUTRAL_CONFIDENCE,
    BASE_ENGINE_BOUNDS,
    MLB_MODEL_BOUNDS,
    ML_POWER_INDEX_BOUNDS,
    VALUE_PICK_FINDER_BOUNDS,
    STATISTICAL_EDGE_BOUNDS,
    CALIBRATED_BOUNDS,

    # Smart score
    SMART_SCORE_BOUNDS,
    SMART_SCORE_WEIGHTS,

    # Helpers
    clamp,
    clamp_to,
    validate_confidence,
)

from .sports import (
    League,
    WeatherModel,
    LeagueProfile,
    LEAGUE_PROFILES,
    resolve_league,
    validate_league,
    get_league_profile,
)

from .seeded_random import SeededRandom, stable_hash
from .structured_logging import EventLog, NullEventLog, match_context
from .persistence import Store, MemoryStore, JsonFileStore

__all__ = [
    'NEUTRAL_CONFIDENCE',
    'BASE_ENGINE_BOUNDS',
    'MLB_MODEL_BOUNDS',
    'ML_POWER_INDEX_BOUNDS',
    'VALUE_PICK_FINDER_BOUNDS',
    'STATISTICAL_EDGE_BOUNDS',
    'CALIBRATED_BOUNDS',
    'SMART_SCORE_BOUNDS',
    'SMART_SCORE_WEIGHTS',
    'clamp',
    'clamp_to',
    'validate_confidence',
    'League',
    'WeatherModel',
    'LeagueProfile',
    'LEAGUE_PROFILES',
    'resolve_league',
    'validate_league',
    'get_league_profile',
    'SeededRandom',
    'stable_hash',
    'EventLog',
    'NullEventLog',
    'match_context',
    'Store',
    'MemoryStore',
    'JsonFileStore',
]
