"""
validators/consensus.py - Weighted Multi-Algorithm Consensus

Weights come from each algorithm's settled record:

    reliability  = min(1, n / 30)
    shrunk       = reliability * win_rate + (1 - reliability) * 50
    calibration  = max(0, 1 - |win_rate - avg_confidence| / 50)
    raw          = (shrunk / 100) * (0.7 + 0.3 * calibration)

Raw weights are normalized, clamped to [0.05, 0.6]; paused algorithms get the
floor. With no performance data every algorithm gets an equal share.

The consensus pick is a weighted vote over non-paused algorithms and its
confidence is weighted_avg * (0.85 + 0.15 * agreement), clamped [40, 95].
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Union

from core.algorithm_ids import BASE_WEIGHTS, algorithm_key, algorithm_name
from core.invariants import CALIBRATION_WEIGHT_BOUNDS, CONSENSUS_BOUNDS, clamp, clamp_to
from engine.calibration import AlgorithmPerformance, should_pause_algorithm
from match_schema import Match, Prediction, ProjectedScore, Side

logger = logging.getLogger(__name__)

MIN_SAMPLES_FOR_FULL_WEIGHT = 30
AGREEMENT_FLOOR = 0.85
AGREEMENT_SPAN = 0.15


@dataclass
class AlgorithmWeight:
    algorithm_id: str
    weight: float
    win_rate: float = 50.0
    total_predictions: int = 0
    avg_confidence: float = 50.0
    reliability: float = 0.0
    is_paused: bool = False

    @property
    def name(self) -> str:
        return algorithm_name(self.algorithm_id)

    def to_dict(self):
        return {
            "algorithm_id": self.algorithm_id,
            "algorithm_name": self.name,
            "weight": round(self.weight, 4),
            "win_rate": self.win_rate,
            "total_predictions": self.total_predictions,
            "avg_confidence": self.avg_confidence,
            "reliability": round(self.reliability, 3),
            "is_paused": self.is_paused,
        }


@dataclass
class ConsensusResult:
    recommended: Optional[Side]
    confidence: float
    agreement: float
    unanimous: bool
    weighted_confidence: float
    true_probability: Optional[float] = None
    expected_value: Optional[float] = None
    ev_percentage: Optional[float] = None
    projected_score: Optional[ProjectedScore] = None
    votes: Dict[str, float] = field(default_factory=dict)
    components: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def is_skip(self) -> bool:
        return self.recommended is None

    def to_dict(self):
        return {
            "recommended": self.recommended.value if self.recommended else "skip",
            "confidence": self.confidence,
            "agreement": round(self.agreement, 4),
            "unanimous": self.unanimous,
            "weighted_confidence": self.weighted_confidence,
            "true_probability": self.true_probability,
            "expected_value": self.expected_value,
            "ev_percentage": self.ev_percentage,
            "projected_score": self.projected_score.model_dump() if self.projected_score else None,
            "votes": self.votes,
            "components": self.components,
            "skipped": self.skipped,
        }


# =============================================================================
# WEIGHTS
# =============================================================================


def default_weights() -> List[AlgorithmWeight]:
    share = 1 / len(BASE_WEIGHTS)
    return [AlgorithmWeight(algorithm_id=alg_id, weight=share) for alg_id in BASE_WEIGHTS]


def compute_weights(performances: Iterable[AlgorithmPerformance]) -> List[AlgorithmWeight]:
    performances = list(performances)
    if not performances:
        return default_weights()

    raw: List[float] = []
    weights: List[AlgorithmWeight] = []
    for perf in performances:
        reliability = min(1.0, perf.total_bets / MIN_SAMPLES_FOR_FULL_WEIGHT)
        win_rate = perf.win_rate if perf.total_bets else 50.0
        shrunk = reliability * win_rate + (1 - reliability) * 50
        calibration_bonus = max(0.0, 1 - abs(win_rate - perf.expected_win_rate) / 50)
        raw.append((shrunk / 100) * (0.7 + 0.3 * calibration_bonus))
        weights.append(AlgorithmWeight(
            algorithm_id=algorithm_key(perf.algorithm_id),
            weight=0.0,
            win_rate=round(win_rate, 2),
            total_predictions=perf.total_bets,
            avg_confidence=round(perf.expected_win_rate, 2),
            reliability=reliability,
            is_paused=should_pause_algorithm(perf),
        ))

    total = sum(raw)
    for weight, value in zip(weights, raw):
        normalized = value / total if total > 0 else 1 / len(weights)
        if weight.is_paused:
            weight.weight = CALIBRATION_WEIGHT_BOUNDS[0]
        else:
            weight.weight = clamp_to(normalized, CALIBRATION_WEIGHT_BOUNDS)
    return weights


# =============================================================================
# SYNTHESIS
# =============================================================================


def _as_prediction(item: Union[Match, Prediction]) -> Optional[Prediction]:
    return item.prediction if isinstance(item, Match) else item


def synthesize_consensus(
    predictions: Mapping[str, Union[Match, Prediction]],
    weights: Optional[Iterable[AlgorithmWeight]] = None,
) -> ConsensusResult:
    """
    Args:
        predictions: algorithm id -> Prediction (or predicted Match)
        weights: from compute_weights; missing ids get an equal share
    """
    weight_map = {w.algorithm_id: w for w in (weights if weights is not None else default_weights())}

    active: Dict[str, Prediction] = {}
    skipped: List[str] = []
    for alg_id, item in predictions.items():
        key = algorithm_key(alg_id)
        prediction = _as_prediction(item)
        if prediction is None:
            continue
        paused = (prediction.calibration is not None and prediction.calibration.is_paused) or (
            key in weight_map and weight_map[key].is_paused
        )
        if paused:
            skipped.append(key)
            continue
        active[key] = prediction

    if not active:
        logger.info("No active algorithms for consensus (skipped: %s)", skipped)
        return ConsensusResult(
            recommended=None,
            confidence=CONSENSUS_BOUNDS[0],
            agreement=0.0,
            unanimous=False,
            weighted_confidence=0.0,
            skipped=skipped,
        )

    equal_share = 1 / len(active)
    votes = {side: 0.0 for side in Side}
    total_weight = 0.0
    confidence = probability = ev = ev_pct = home_score = away_score = 0.0
    has_value = has_score = True

    for key, prediction in active.items():
        w = weight_map[key].weight if key in weight_map else equal_share
        total_weight += w
        votes[prediction.recommended] += w
        confidence += prediction.confidence * w
        probability += (prediction.true_probability if prediction.true_probability is not None
                        else prediction.confidence / 100) * w
        if prediction.expected_value is None:
            has_value = False
        else:
            ev += prediction.expected_value * w
            ev_pct += (prediction.ev_percentage or 0.0) * w
        if prediction.projected_score is None:
            has_score = False
        else:
            home_score += prediction.projected_score.home * w
            away_score += prediction.projected_score.away * w

    if total_weight > 0:
        confidence /= total_weight
        probability /= total_weight
        ev /= total_weight
        ev_pct /= total_weight
        home_score /= total_weight
        away_score /= total_weight

    # Ties resolve home, then away, then draw
    recommended = max(Side, key=lambda side: votes[side])
    agreeing = sum(1 for p in active.values() if p.recommended == recommended)
    agreement = agreeing / len(active)
    final = round(confidence * (AGREEMENT_FLOOR + AGREEMENT_SPAN * agreement))

    return ConsensusResult(
        recommended=recommended,
        confidence=clamp_to(final, CONSENSUS_BOUNDS),
        agreement=agreement,
        unanimous=agreement == 1,
        weighted_confidence=round(confidence),
        true_probability=round(clamp(probability, 0.01, 0.99), 4),
        expected_value=round(ev, 4) if has_value else None,
        ev_percentage=round(ev_pct, 2) if has_value else None,
        projected_score=ProjectedScore(home=round(home_score, 1), away=round(away_score, 1)) if has_score else None,
        votes={side.value: round(v, 4) for side, v in votes.items() if v > 0},
        components=list(active),
        skipped=skipped,
    )
