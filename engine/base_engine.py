"""
BASE_ENGINE.PY - Neutral-start prediction engine
================================================

Confidence starts at 50 (no inherent home bias) and moves in this order:

    + (home strength sum - away strength sum) * 0.25
    + dynamic home advantage
    + (historical home win pct * 100 - 50) * 0.25     (when supplied)
    + (home momentum - away momentum) * 0.20

recommended = "home" iff confidence >= 50, else "away"
confidence  = clamp(|confidence|, 40, 85)

The first result per match id is locked in the PredictionCache. MLB matches
are routed to MLBPredictionModel before any of the above runs.

Usage:
    engine = PredictionEngine(cache, event_log=events)
    annotated = engine.predict(match)       # Match with .prediction
    engine.predict(match) is annotated      # True within the TTL window
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from core.invariants import BASE_ENGINE_BOUNDS, NEUTRAL_CONFIDENCE, clamp_to
from core.seeded_random import SeededRandom
from core.sports import League
from core.structured_logging import EventLog, NullEventLog, match_context
from engine.annotation import annotate_match
from engine.expected_value import pick_expected_value
from engine.home_advantage import calculate_home_advantage
from engine.mlb_model import MLBPredictionModel
from engine.prediction_cache import PredictionCache
from engine.score_projector import project_score
from engine.team_strength import TeamStrength, calculate_team_strength, recent_win_rate
from match_schema import Match, Prediction, Side

logger = logging.getLogger(__name__)

STRENGTH_WEIGHT = 0.25
HISTORY_WEIGHT = 0.25
MOMENTUM_WEIGHT = 0.20


@dataclass(frozen=True)
class BaseComponents:
    """
    Every intermediate the base engine used, so algorithm variants can
    re-derive confidence instead of copying it.
    """
    home: TeamStrength
    away: TeamStrength
    strength_adjustment: float
    home_advantage: float
    history_adjustment: float
    momentum_adjustment: float
    raw_confidence: float

    @property
    def recommended(self) -> Side:
        return Side.HOME if self.raw_confidence >= NEUTRAL_CONFIDENCE else Side.AWAY

    @property
    def confidence(self) -> float:
        return clamp_to(abs(self.raw_confidence), BASE_ENGINE_BOUNDS)

    def to_dict(self):
        return {
            "home": self.home.to_dict(),
            "away": self.away.to_dict(),
            "strength_adjustment": self.strength_adjustment,
            "home_advantage": self.home_advantage,
            "history_adjustment": self.history_adjustment,
            "momentum_adjustment": self.momentum_adjustment,
            "raw_confidence": self.raw_confidence,
        }


def calculate_base_components(match: Match) -> BaseComponents:
    """Pure computation of the base confidence for one match."""
    home = calculate_team_strength(match.home_team)
    away = calculate_team_strength(match.away_team)

    confidence = NEUTRAL_CONFIDENCE

    strength = (home.total - away.total) * STRENGTH_WEIGHT
    confidence += strength

    # No form or record for the home side keeps the start exactly neutral
    home_advantage = 0.0
    if recent_win_rate(match.home_team) is not None:
        home_advantage = calculate_home_advantage(match.home_team, match.league)
    confidence += home_advantage

    history = 0.0
    if match.historical_home_win_pct is not None:
        history = (match.historical_home_win_pct * 100 - 50) * HISTORY_WEIGHT
        confidence += history

    momentum = (home.momentum - away.momentum) * MOMENTUM_WEIGHT
    confidence += momentum

    return BaseComponents(
        home=home,
        away=away,
        strength_adjustment=strength,
        home_advantage=home_advantage,
        history_adjustment=history,
        momentum_adjustment=momentum,
        raw_confidence=confidence,
    )


class PredictionEngine:
    """Generic engine. One instance per process, sharing the process cache."""

    def __init__(
        self,
        cache: PredictionCache,
        event_log: Optional[EventLog] = None,
        mlb_model=None,
        rng_factory: Optional[Callable[[Match], SeededRandom]] = None,
    ):
        self.cache = cache
        self.events = event_log if event_log is not None else NullEventLog()
        self._rng_factory = rng_factory
        if mlb_model is None:
            mlb_model = MLBPredictionModel(cache, event_log=self.events)
        self.mlb_model = mlb_model

    def predict(self, match: Match) -> Match:
        """Return the match annotated with its (locked) base prediction."""
        if match.league is League.MLB:
            return self.mlb_model.predict(match)
        with match_context(match.id):
            return self.cache.get_or_compute(match.id, lambda: self._build(match))

    def base_prediction(self, match: Match) -> Prediction:
        return self.predict(match).prediction

    def _build(self, match: Match) -> Match:
        components = calculate_base_components(match)
        recommended = components.recommended
        confidence = round(components.confidence, 1)

        rng = self._rng_factory(match) if self._rng_factory else None
        projected = project_score(match.home_team, components.home, components.away, match.league, rng=rng)

        prediction = Prediction(
            recommended=recommended,
            confidence=confidence,
            raw_confidence=round(components.raw_confidence, 2),
            projected_score=projected,
            **self._value_fields(match, recommended, confidence),
        )
        self.events.log(
            "base prediction locked",
            recommended=recommended.value,
            confidence=confidence,
            raw_confidence=components.raw_confidence,
        )
        logger.debug("Base prediction for %s: %s @ %.1f", match.id, recommended.value, confidence)
        return annotate_match(match, prediction=prediction).match

    @staticmethod
    def _value_fields(match: Match, side: Side, confidence: float):
        if not match.odds.has_prices:
            return {}
        ev = pick_expected_value(match.odds, side, confidence)
        return {
            "expected_value": ev.expected_value,
            "ev_percentage": ev.ev_percentage,
            "true_probability": ev.true_probability,
        }
