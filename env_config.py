"""
Environment Configuration Helper
================================
Centralized env var loading with fallbacks and typed getters.
Every tunable the engine reads at runtime lives on Config.
"""

import os
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


def get_env(*names: str, default: Any = None) -> Optional[str]:
    """
    Get environment variable with fallback names.

    Tries each name in order, returns first non-empty value.

    Example:
        get_env("PREDICTION_CACHE_PATH", "BETSMART_CACHE_PATH")
    """
    for name in names:
        value = os.getenv(name)
        if value and str(value).strip():
            return value.strip()
    return default


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean env var (true/false/1/0)."""
    value = os.getenv(name, "").lower().strip()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def get_env_float(name: str, default: float) -> float:
    value = get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not a number, using {default}")
        return default


def get_env_int(name: str, default: int) -> int:
    value = get_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{name}={value!r} is not an integer, using {default}")
        return default


# ============================================================================
# CENTRALIZED CONFIG
# ============================================================================

class Config:
    """Centralized configuration from env vars."""

    ENGINE_VERSION = "2.4.0"

    # ============================================================================
    # Prediction cache
    # ============================================================================
    PREDICTION_CACHE_TTL_SECONDS = get_env_int("PREDICTION_CACHE_TTL_SECONDS", 30 * 60)
    PREDICTION_CACHE_MAX_SIZE = get_env_int("PREDICTION_CACHE_MAX_SIZE", 500)
    PREDICTION_CACHE_DEBOUNCE_SECONDS = get_env_float("PREDICTION_CACHE_DEBOUNCE_SECONDS", 1.0)
    PREDICTION_CACHE_PATH = get_env("PREDICTION_CACHE_PATH", "BETSMART_CACHE_PATH")

    # ============================================================================
    # Staking
    # ============================================================================
    KELLY_FRACTION = get_env_float("KELLY_FRACTION", 0.25)
    KELLY_MIN_EV_PCT = get_env_float("KELLY_MIN_EV_PCT", 3.0)
    KELLY_MAX_BET_PCT = get_env_float("KELLY_MAX_BET_PCT", 5.0)

    # ============================================================================
    # Simulation
    # ============================================================================
    MONTE_CARLO_SAMPLES = get_env_int("MONTE_CARLO_SAMPLES", 200)

    # ============================================================================
    # External collaborators
    # ============================================================================
    INJURY_LOOKUP_TIMEOUT = get_env_float("INJURY_LOOKUP_TIMEOUT", 3.0)

    # ============================================================================
    # Feature flags
    # ============================================================================
    CALIBRATION_ENABLED = get_env_bool("CALIBRATION_ENABLED", True)

    @classmethod
    def log_status(cls):
        """Log config status at boot."""
        status = {
            "cache_ttl": cls.PREDICTION_CACHE_TTL_SECONDS,
            "cache_size": cls.PREDICTION_CACHE_MAX_SIZE,
            "cache_persisted": bool(cls.PREDICTION_CACHE_PATH),
            "kelly_fraction": cls.KELLY_FRACTION,
            "calibration": cls.CALIBRATION_ENABLED,
        }
        status_str = " ".join(f"{k}={v}" for k, v in status.items())
        logger.info(f"ENV OK: {status_str}")
        return status
