"""
ALGORITHMS MODULE - Prediction algorithm variants
==================================================

Three variants re-derive confidence from the locked base prediction:

- MLPowerIndex: form, ratings and time-series momentum with Bayesian pull
- ValuePickFinder: value factor, CLV, price trend, RLM, arbitrage, public fade
- StatisticalEdge: seeded situational and matchup spots, weather, injuries

Usage:
    from engine.algorithms import create_algorithm, predict_all

    variant = create_algorithm(AlgorithmId.ML_POWER_INDEX, engine)
    annotated = variant.predict(match)

    picks = predict_all(match, engine, calibration)   # {algorithm_id: Match}
"""

from typing import Dict, Optional, Type

from core.algorithm_ids import AlgorithmId, algorithm_key
from core.structured_logging import EventLog
from engine.algorithms.base import AlgorithmVariant, VariantDraft, home_oriented, pick_support, resolve_side
from engine.algorithms.ml_power_index import MLPowerIndex
from engine.algorithms.statistical_edge import StatisticalEdge
from engine.algorithms.value_pick_finder import ValuePickFinder
from engine.base_engine import PredictionEngine
from engine.calibration import CalibrationService
from match_schema import Match

ALGORITHM_REGISTRY: Dict[str, Type[AlgorithmVariant]] = {
    AlgorithmId.ML_POWER_INDEX.value: MLPowerIndex,
    AlgorithmId.VALUE_PICK_FINDER.value: ValuePickFinder,
    AlgorithmId.STATISTICAL_EDGE.value: StatisticalEdge,
}


def create_algorithm(
    algorithm_id,
    engine: PredictionEngine,
    calibration: Optional[CalibrationService] = None,
    event_log: Optional[EventLog] = None,
) -> AlgorithmVariant:
    """
    Instantiate a variant by id.

    Raises:
        ValueError: If algorithm_id is not registered
    """
    key = algorithm_key(algorithm_id)
    variant_cls = ALGORITHM_REGISTRY.get(key)
    if variant_cls is None:
        raise ValueError(f"Unknown algorithm id: {key}")
    return variant_cls(engine, calibration=calibration, event_log=event_log)


def predict_all(
    match: Match,
    engine: PredictionEngine,
    calibration: Optional[CalibrationService] = None,
    event_log: Optional[EventLog] = None,
) -> Dict[str, Match]:
    """Run every registered variant on match; keyed by algorithm id."""
    calibration = calibration or CalibrationService()
    return {
        key: create_algorithm(key, engine, calibration, event_log).predict(match)
        for key in ALGORITHM_REGISTRY
    }


__all__ = [
    "ALGORITHM_REGISTRY",
    "AlgorithmVariant",
    "VariantDraft",
    "MLPowerIndex",
    "ValuePickFinder",
    "StatisticalEdge",
    "create_algorithm",
    "predict_all",
    "home_oriented",
    "pick_support",
    "resolve_side",
]
