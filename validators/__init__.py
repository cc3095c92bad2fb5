"""
validators - Prediction quality checks

- cross_algorithm: agreement between the primary pick and the variants
- prediction_validator: home / favorite bias and confidence mismatch
- consensus: performance-weighted multi-algorithm consensus
"""

from .cross_algorithm import (
    agreement_level,
    annotate_validation,
    validate_algorithms,
)

from .prediction_validator import (
    PredictionValidation,
    validate_prediction,
)

from .consensus import (
    AlgorithmWeight,
    ConsensusResult,
    compute_weights,
    default_weights,
    synthesize_consensus,
)

__all__ = [
    # Cross-algorithm
    "validate_algorithms",
    "annotate_validation",
    "agreement_level",
    # Bias checks
    "PredictionValidation",
    "validate_prediction",
    # Consensus
    "AlgorithmWeight",
    "ConsensusResult",
    "compute_weights",
    "default_weights",
    "synthesize_consensus",
]
