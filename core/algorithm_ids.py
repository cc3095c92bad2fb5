"""
ALGORITHM_IDS.PY - Stable identifiers for the prediction algorithms

These ids are persisted with every prediction and keyed into calibration
data, so they never change once assigned.
"""

from enum import Enum
from typing import Dict


class AlgorithmId(str, Enum):
    ML_POWER_INDEX = "f4ce9fdc-c41a-4a5c-9f18-5d732674c5b8"
    VALUE_PICK_FINDER = "3a7e2d9b-8c5f-4b1f-9e17-7b31a4dce6c2"
    STATISTICAL_EDGE = "85c48bbe-5b1a-4c1e-a0d5-e284e9e952f1"


ALGORITHM_NAMES: Dict[str, str] = {
    AlgorithmId.ML_POWER_INDEX.value: "ML Power Index",
    AlgorithmId.VALUE_PICK_FINDER.value: "Value Pick Finder",
    AlgorithmId.STATISTICAL_EDGE.value: "Statistical Edge",
}

ALGORITHM_DESCRIPTIONS: Dict[str, str] = {
    AlgorithmId.ML_POWER_INDEX.value: (
        "Form and time-series momentum reweighting with Bayesian pull-to-mean"
    ),
    AlgorithmId.VALUE_PICK_FINDER.value: (
        "Odds value, closing-line value and line-movement analysis"
    ),
    AlgorithmId.STATISTICAL_EDGE.value: (
        "Situational, matchup, weather and injury modeling"
    ),
}

# Starting weights before any performance data exists
BASE_WEIGHTS: Dict[str, float] = {
    AlgorithmId.ML_POWER_INDEX.value: 0.34,
    AlgorithmId.VALUE_PICK_FINDER.value: 0.33,
    AlgorithmId.STATISTICAL_EDGE.value: 0.33,
}

DEFAULT_WEIGHT = 0.33


def algorithm_name(algorithm_id: str) -> str:
    return ALGORITHM_NAMES.get(algorithm_key(algorithm_id), "Unknown Algorithm")


def algorithm_key(algorithm_id) -> str:
    """Plain string id for an AlgorithmId member or a raw id string."""
    if isinstance(algorithm_id, AlgorithmId):
        return algorithm_id.value
    return str(algorithm_id)
