"""
validators/cross_algorithm.py - Cross-Algorithm Agreement

Compares the primary pick against each variant's pick:

    agreement_rate  = matches / total
    1.0             -> high
    >= 0.66         -> medium
    exactly 1/3     -> low
    otherwise       -> conflicted
    consensus_score = round(agreement_rate * 100)

DOES NOT MUTATE INPUT - annotate_validation returns a new Match.
"""

import logging
from typing import Mapping, Union

from core.algorithm_ids import algorithm_key
from engine.annotation import annotate_match
from match_schema import AgreementLevel, AlgorithmValidation, Match, Prediction

logger = logging.getLogger(__name__)

MEDIUM_AGREEMENT = 0.66

PredictionLike = Union[Match, Prediction]


def _prediction_of(item: PredictionLike) -> Prediction:
    prediction = item.prediction if isinstance(item, Match) else item
    if prediction is None:
        raise ValueError("match has no prediction to validate")
    return prediction


def agreement_level(matches: int, total: int) -> AgreementLevel:
    if total <= 0:
        return AgreementLevel.CONFLICTED
    if matches == total:
        return AgreementLevel.HIGH
    rate = matches / total
    if rate >= MEDIUM_AGREEMENT:
        return AgreementLevel.MEDIUM
    if matches * 3 == total:
        return AgreementLevel.LOW
    return AgreementLevel.CONFLICTED


def validate_algorithms(primary: PredictionLike, variants: Mapping[str, PredictionLike]) -> AlgorithmValidation:
    """
    Args:
        primary: Prediction (or predicted Match) the others are compared to
        variants: algorithm id -> Prediction (or predicted Match)

    Raises:
        ValueError: If any input has no prediction
    """
    primary_pick = _prediction_of(primary).recommended
    picks = {algorithm_key(alg_id): _prediction_of(item).recommended for alg_id, item in variants.items()}

    total = len(picks)
    matches = sum(1 for pick in picks.values() if pick == primary_pick)
    rate = matches / total if total else 0.0
    level = agreement_level(matches, total)

    if level is AgreementLevel.CONFLICTED:
        logger.debug("Algorithms conflict on %s pick: %s", primary_pick.value, {k: v.value for k, v in picks.items()})

    return AlgorithmValidation(
        primary_pick=primary_pick,
        algorithm_picks=picks,
        matches=matches,
        total=total,
        agreement_rate=round(rate, 4),
        agreement_level=level,
        consensus_score=round(rate * 100),
    )


def annotate_validation(match: Match, variants: Mapping[str, PredictionLike]) -> Match:
    """Attach the cross-algorithm validation to an already-predicted match."""
    validation = validate_algorithms(match, variants)
    return annotate_match(match, algorithm_validation=validation).match
