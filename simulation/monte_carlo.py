"""
MONTE_CARLO.PY - Uncertainty bands for a multi-algorithm pick
=============================================================

Perturbs every algorithm's confidence, probability, projected score and EV%
with Gaussian noise, re-runs the weighted vote per sample and reports:

- uncertainty bands (point, lower, upper, std_dev, width_pct)
- pick stability (share of samples agreeing with the modal pick)
- pick distribution (home / away / skip shares)
- calibration signal (well-calibrated / overconfident / underconfident / uncertain)

Each algorithm votes for the side it recommends; a sample votes "skip" for
it when its noisy confidence drops below 45. Noisy projected scores only feed
the score bands.

Usage:
    from simulation.monte_carlo import run_monte_carlo

    result = run_monte_carlo(variant_predictions, weights, samples=200, seed=7)
    result.confidence.lower, result.pick_stability
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from core.algorithm_ids import algorithm_key
from env_config import Config
from match_schema import Match, Prediction, Side
from validators.consensus import AlgorithmWeight

logger = logging.getLogger(__name__)

CONFIDENCE_CLIP = (30.0, 98.0)
PROBABILITY_CLIP = (0.05, 0.98)
SKIP_BELOW = 45.0
UNCERTAIN_WIDTH = 20.0
EDGE_MARGIN = 3.0


@dataclass
class UncertaintyBand:
    point: float = 0.0
    lower: float = 0.0
    upper: float = 0.0
    std_dev: float = 0.0
    width_pct: float = 0.0

    def to_dict(self):
        return {
            "point": self.point,
            "lower": self.lower,
            "upper": self.upper,
            "std_dev": self.std_dev,
            "width_pct": self.width_pct,
        }


@dataclass
class MonteCarloResult:
    confidence: UncertaintyBand = field(default_factory=UncertaintyBand)
    true_probability: UncertaintyBand = field(default_factory=UncertaintyBand)
    projected_home: UncertaintyBand = field(default_factory=UncertaintyBand)
    projected_away: UncertaintyBand = field(default_factory=UncertaintyBand)
    ev_percentage: UncertaintyBand = field(default_factory=UncertaintyBand)
    pick_stability: float = 0.0
    pick_distribution: Dict[str, float] = field(default_factory=dict)
    calibration_signal: str = "uncertain"
    samples: int = 0

    def to_dict(self):
        return {
            "confidence": self.confidence.to_dict(),
            "true_probability": self.true_probability.to_dict(),
            "projected_home": self.projected_home.to_dict(),
            "projected_away": self.projected_away.to_dict(),
            "ev_percentage": self.ev_percentage.to_dict(),
            "pick_stability": self.pick_stability,
            "pick_distribution": self.pick_distribution,
            "calibration_signal": self.calibration_signal,
            "samples": self.samples,
        }


def build_band(samples: np.ndarray, percentiles: Tuple[float, float]) -> UncertaintyBand:
    if samples.size == 0:
        return UncertaintyBand()
    ordered = np.sort(samples)
    n = ordered.size
    lower = ordered[int(percentiles[0] / 100 * n)]
    upper = ordered[min(n - 1, int(percentiles[1] / 100 * n))]
    point = round(float(np.mean(samples)), 2)
    width = round((upper - lower) / abs(point) * 100) if point != 0 else 0
    return UncertaintyBand(
        point=point,
        lower=round(float(lower), 2),
        upper=round(float(upper), 2),
        std_dev=round(float(np.std(samples)), 2),
        width_pct=float(width),
    )


def calibration_signal(band: UncertaintyBand) -> str:
    if band.upper - band.lower > UNCERTAIN_WIDTH:
        return "uncertain"
    if band.point > band.upper - EDGE_MARGIN:
        return "overconfident"
    if band.point < band.lower + EDGE_MARGIN:
        return "underconfident"
    return "well-calibrated"


def _as_prediction(item: Union[Match, Prediction]) -> Optional[Prediction]:
    return item.prediction if isinstance(item, Match) else item


def run_monte_carlo(
    predictions: Mapping[str, Union[Match, Prediction]],
    weights: Optional[Iterable[AlgorithmWeight]] = None,
    samples: int = None,
    confidence_noise: float = 6.0,
    score_noise: float = 4.0,
    probability_noise: float = 0.08,
    percentiles: Sequence[float] = (10, 90),
    seed: Optional[int] = None,
) -> MonteCarloResult:
    samples = Config.MONTE_CARLO_SAMPLES if samples is None else samples
    active = {algorithm_key(k): p for k, p in ((k, _as_prediction(v)) for k, v in predictions.items()) if p is not None}
    if not active or samples <= 0:
        return MonteCarloResult(samples=max(samples, 0))

    weight_map = {w.algorithm_id: w.weight for w in (weights or [])}
    rng = np.random.default_rng(seed)
    equal_share = 1 / len(active)

    conf_sum = np.zeros(samples)
    prob_sum = np.zeros(samples)
    ev_sum = np.zeros(samples)
    home_sum = np.zeros(samples)
    away_sum = np.zeros(samples)
    votes = {"home": np.zeros(samples), "away": np.zeros(samples), "skip": np.zeros(samples)}
    total = 0.0
    score_total = 0.0

    for key, prediction in active.items():
        w = weight_map.get(key, equal_share)
        total += w

        probability = prediction.true_probability if prediction.true_probability is not None else prediction.confidence / 100
        conf = np.clip(rng.normal(prediction.confidence, confidence_noise, samples), *CONFIDENCE_CLIP)
        prob = np.clip(rng.normal(probability, probability_noise, samples), *PROBABILITY_CLIP)
        ev = rng.normal(prediction.ev_percentage or 0.0, confidence_noise * 0.5, samples)
        conf_sum += conf * w
        prob_sum += prob * w
        ev_sum += ev * w

        if prediction.projected_score is not None:
            home = np.maximum(0, rng.normal(prediction.projected_score.home, score_noise, samples))
            away = np.maximum(0, rng.normal(prediction.projected_score.away, score_noise, samples))
            home_sum += home * w
            away_sum += away * w
            score_total += w

        # Draw picks have no side to vote for
        skip = (conf < SKIP_BELOW) | (prediction.recommended == Side.DRAW)
        side = "home" if prediction.recommended == Side.HOME else "away"
        votes["skip"] += np.where(skip, w, 0.0)
        votes[side] += np.where(~skip, w, 0.0)

    skip_pick = (votes["skip"] > votes["home"]) & (votes["skip"] > votes["away"])
    home_pick = ~skip_pick & (votes["home"] >= votes["away"])
    counts = {
        "home": int(np.sum(home_pick)),
        "away": int(np.sum(~skip_pick & ~home_pick)),
        "skip": int(np.sum(skip_pick)),
    }
    counts = {k: v for k, v in counts.items() if v}

    bounds = (float(percentiles[0]), float(percentiles[1]))
    confidence = build_band(conf_sum / total, bounds)
    result = MonteCarloResult(
        confidence=confidence,
        true_probability=build_band(prob_sum / total, bounds),
        ev_percentage=build_band(ev_sum / total, bounds),
        pick_stability=max(counts.values()) / samples,
        pick_distribution={k: round(v / samples, 2) for k, v in counts.items()},
        calibration_signal=calibration_signal(confidence),
        samples=samples,
    )
    if score_total > 0:
        result.projected_home = build_band(home_sum / score_total, bounds)
        result.projected_away = build_band(away_sum / score_total, bounds)

    logger.debug("Monte Carlo over %d samples: stability=%.2f signal=%s",
                 samples, result.pick_stability, result.calibration_signal)
    return result
