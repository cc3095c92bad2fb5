"""
SYSTEM INVARIANTS - Single Source of Truth

Every numeric output the engine returns is clamped to one of the bounds
below before it leaves the component that produced it. Tests import these
constants rather than repeating the numbers.
"""

from typing import Dict, Tuple
import logging

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIDENCE BOUNDS (per component)
# =============================================================================

NEUTRAL_CONFIDENCE = 50.0

BASE_ENGINE_BOUNDS: Tuple[float, float] = (40.0, 85.0)
MLB_MODEL_BOUNDS: Tuple[float, float] = (45.0, 75.0)
ML_POWER_INDEX_BOUNDS: Tuple[float, float] = (40.0, 85.0)
VALUE_PICK_FINDER_BOUNDS: Tuple[float, float] = (40.0, 85.0)
STATISTICAL_EDGE_BOUNDS: Tuple[float, float] = (35.0, 90.0)
CALIBRATED_BOUNDS: Tuple[float, float] = (35.0, 95.0)
CONSENSUS_BOUNDS: Tuple[float, float] = (40.0, 95.0)

# =============================================================================
# TEAM STRENGTH
# =============================================================================

STRENGTH_BOUNDS: Tuple[float, float] = (30.0, 95.0)
MOMENTUM_BOUNDS: Tuple[float, float] = (20.0, 95.0)

# =============================================================================
# SMART SCORE
# =============================================================================

SMART_SCORE_BOUNDS: Tuple[float, float] = (0.0, 100.0)

SMART_SCORE_WEIGHTS: Dict[str, float] = {
    "momentum": 0.20,
    "value": 0.20,
    "odds_movement": 0.20,
    "weather": 0.15,
    "injuries": 0.15,
    "arbitrage": 0.10,
}

SMART_SCORE_STRONG = 75
SMART_SCORE_MODERATE = 60
SMART_SCORE_AVOID = 35

# =============================================================================
# PREDICTION CACHE
# =============================================================================

CACHE_DEFAULT_TTL_SECONDS = 30 * 60
CACHE_MAX_SIZE = 500
CACHE_EVICTION_FRACTION = 0.10
CACHE_PERSIST_DEBOUNCE_SECONDS = 1.0
# Entries whose serialized form exceeds this are kept in memory only
CACHE_MAX_ENTRY_BYTES = 64 * 1024

# =============================================================================
# CALIBRATION
# =============================================================================

CALIBRATION_MULTIPLIER_BOUNDS: Tuple[float, float] = (0.7, 1.15)
CALIBRATION_WEIGHT_BOUNDS: Tuple[float, float] = (0.05, 0.6)
CALIBRATION_BASE_THRESHOLD = 55.0
CALIBRATION_MIN_SAMPLES = 10
CALIBRATION_PAUSE_WEIGHT = 0.1


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def clamp_to(value: float, bounds: Tuple[float, float]) -> float:
    return clamp(value, bounds[0], bounds[1])


def validate_confidence(confidence: float, bounds: Tuple[float, float]) -> Tuple[bool, str]:
    """
    Check a confidence against component bounds.

    Returns:
        (is_valid, error_message)
    """
    low, high = bounds
    if confidence < low or confidence > high:
        return False, f"confidence {confidence} outside [{low}, {high}]"
    return True, ""
