"""
BASE.PY - Shared flow for the algorithm variants

    base prediction (cached)  ->  adjust()  ->  calibrate  ->  EV / Kelly  ->  lock

Every variant caches its own result under "<algorithm_id>:<match_id>", so a
variant is locked independently of the base prediction and of the other
variants.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from core.algorithm_ids import AlgorithmId, algorithm_name
from core.invariants import BASE_ENGINE_BOUNDS, NEUTRAL_CONFIDENCE, clamp, clamp_to
from core.structured_logging import EventLog, match_context
from engine.annotation import annotate_match
from engine.base_engine import PredictionEngine
from engine.calibration import CalibrationService
from engine.expected_value import calculate_kelly_criterion, odds_for_side, pick_expected_value
from engine.prediction_cache import PredictionCache
from match_schema import Match, Prediction, Side

logger = logging.getLogger(__name__)


@dataclass
class VariantDraft:
    """Uncalibrated output of one variant."""
    recommended: Side
    raw_confidence: float
    reasoning: List[str] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)


def home_oriented(prediction: Prediction) -> float:
    """
    Base confidence expressed as support for the home side.

    The base and MLB engines keep raw_confidence home-oriented (below 50 is an
    away lean) and clamp the stated confidence of an away pick at or under 50,
    so for them the raw value is the one to use. Variant predictions state
    confidence in the picked side and are mirrored instead.
    """
    if prediction.algorithm_id is None and prediction.raw_confidence is not None:
        return clamp(prediction.raw_confidence, 100 - BASE_ENGINE_BOUNDS[1], BASE_ENGINE_BOUNDS[1])
    if prediction.recommended == Side.HOME:
        return prediction.confidence
    return 100 - prediction.confidence


def pick_support(prediction: Prediction) -> float:
    """Base confidence expressed as support for the side it recommends."""
    home_value = home_oriented(prediction)
    return home_value if prediction.recommended == Side.HOME else 100 - home_value


def resolve_side(home_value: float, bounds: Tuple[float, float]) -> Tuple[Side, float]:
    """Side is home iff home_value >= 50; confidence is the value or its mirror, clamped."""
    if home_value >= NEUTRAL_CONFIDENCE:
        return Side.HOME, clamp_to(home_value, bounds)
    return Side.AWAY, clamp_to(100 - home_value, bounds)


class AlgorithmVariant:
    """Subclasses set algorithm_id and implement adjust()."""

    algorithm_id: AlgorithmId
    bounds: Tuple[float, float]
    kelly_fraction: float = 0.25

    def __init__(
        self,
        engine: PredictionEngine,
        calibration: Optional[CalibrationService] = None,
        event_log: Optional[EventLog] = None,
    ):
        self.engine = engine
        self.calibration = calibration or CalibrationService()
        self.events = event_log if event_log is not None else engine.events

    @property
    def name(self) -> str:
        return algorithm_name(self.algorithm_id)

    @property
    def cache(self) -> PredictionCache:
        return self.engine.cache

    def cache_key(self, match: Match) -> str:
        return f"{self.algorithm_id.value}:{match.id}"

    def predict(self, match: Match) -> Match:
        with match_context(match.id):
            return self.cache.get_or_compute(self.cache_key(match), lambda: self._build(match))

    def adjust(self, match: Match, base: Prediction) -> VariantDraft:
        raise NotImplementedError

    def finalize(self, draft: VariantDraft, confidence: float) -> Dict[str, Any]:
        """Prediction fields that depend on the calibrated confidence."""
        return dict(draft.extras)

    def _build(self, match: Match) -> Match:
        base = self.engine.base_prediction(match)
        draft = self.adjust(match, base)
        calibrated = self.calibration.calibrate(draft.raw_confidence, self.algorithm_id, bounds=self.bounds)
        confidence = calibrated.adjusted_confidence

        fields: Dict[str, Any] = {}
        if match.odds.has_prices:
            ev = pick_expected_value(match.odds, draft.recommended, confidence)
            kelly = calculate_kelly_criterion(ev.true_probability, odds_for_side(match.odds, draft.recommended),
                                              self.kelly_fraction)
            fields = {
                "expected_value": ev.expected_value,
                "ev_percentage": ev.ev_percentage,
                "true_probability": ev.true_probability,
                "kelly_fraction": round(kelly.kelly_fraction, 4),
            }

        prediction = Prediction(
            recommended=draft.recommended,
            confidence=confidence,
            raw_confidence=round(draft.raw_confidence, 2),
            algorithm_id=self.algorithm_id.value,
            calibration=calibrated.to_meta(),
            projected_score=base.projected_score,
            reasoning=tuple(draft.reasoning),
            **fields,
            **self.finalize(draft, confidence),
        )
        self.events.log(
            "variant prediction locked",
            algorithm=self.name,
            recommended=draft.recommended.value,
            raw_confidence=draft.raw_confidence,
            confidence=confidence,
            paused=calibrated.is_paused,
        )
        if calibrated.is_paused:
            logger.info("%s is paused; %s pick is low-trust", self.name, match.id)
        return annotate_match(match, prediction=prediction).match
