"""
CALIBRATION.PY - Performance-driven confidence calibration
==========================================================

Each algorithm's raw confidence is scaled by a multiplier learned from how
its settled picks actually performed:

    expected win rate  = average stated confidence of settled picks
    performance delta  = actual win rate - expected win rate
    underperforming    = delta < -5 with >= 10 settled picks  -> multiplier < 1
    overperforming     = delta > +5 with >= 10 settled picks  -> multiplier > 1

Multiplier is clamped to [0.7, 1.15] and weights to [0.05, 0.6]. An algorithm
whose adjusted weight drops below 0.1 is paused: it still returns a number,
but downstream consumers treat it as low-trust and consensus skips it.

A second, algorithm-independent step scales by confidence bin (50-54 ... 95-99):
a bin with five or more settled picks whose win rate misses the bin midpoint by
more than 5 points gets a dampened actual/expected factor, and the result is
kept in [45, 95]. Callers may pass their own bounds, which apply last.

Usage:
    service = CalibrationService()
    service.update_performance(AlgorithmPerformance.from_results(alg_id, results))
    service.update_bins(settled_pairs)
    result = service.calibrate(68.0, alg_id)
    result.adjusted_confidence, result.is_paused
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from core.algorithm_ids import BASE_WEIGHTS, DEFAULT_WEIGHT, algorithm_key, algorithm_name
from core.invariants import (
    CALIBRATED_BOUNDS,
    CALIBRATION_BASE_THRESHOLD,
    CALIBRATION_MIN_SAMPLES,
    CALIBRATION_MULTIPLIER_BOUNDS,
    CALIBRATION_PAUSE_WEIGHT,
    CALIBRATION_WEIGHT_BOUNDS,
    clamp,
    clamp_to,
)
from env_config import Config
from match_schema import CalibrationMeta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationConfig:
    min_bets_for_calibration: int = CALIBRATION_MIN_SAMPLES
    underperformance_threshold: float = 5.0
    overperformance_threshold: float = 5.0
    max_weight_change: float = 0.15
    max_confidence_reduction: float = 25.0
    max_confidence_boost: float = 10.0
    cold_streak_threshold: int = 4
    hot_streak_threshold: int = 4
    min_confidence_floor: float = 50.0


DEFAULT_CALIBRATION_CONFIG = CalibrationConfig()


@dataclass(frozen=True)
class AlgorithmPerformance:
    """
    Settled-pick summary for one algorithm over a window.

    win_rate and expected_win_rate are percentages. streak is positive for a
    current run of wins, negative for losses.
    """
    algorithm_id: str
    wins: int = 0
    losses: int = 0
    expected_win_rate: float = 50.0
    streak: int = 0
    config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG

    @classmethod
    def from_results(
        cls,
        algorithm_id: str,
        results: Sequence[Tuple[float, bool]],
        config: CalibrationConfig = DEFAULT_CALIBRATION_CONFIG,
    ) -> "AlgorithmPerformance":
        """
        Build from (confidence, won) pairs ordered most recent first.
        """
        results = list(results)
        wins = sum(1 for _, won in results if won)
        expected = sum(conf for conf, _ in results) / len(results) if results else 50.0

        streak = 0
        if results:
            first = results[0][1]
            for _, won in results:
                if won != first:
                    break
                streak += 1
            if not first:
                streak = -streak

        return cls(
            algorithm_id=algorithm_id,
            wins=wins,
            losses=len(results) - wins,
            expected_win_rate=expected,
            streak=streak,
            config=config,
        )

    @property
    def total_bets(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        if self.total_bets == 0:
            return 0.0
        return self.wins / self.total_bets * 100

    @property
    def performance_vs_expected(self) -> float:
        return self.win_rate - self.expected_win_rate

    @property
    def has_sample(self) -> bool:
        return self.total_bets >= self.config.min_bets_for_calibration

    @property
    def is_underperforming(self) -> bool:
        return self.has_sample and self.performance_vs_expected < -self.config.underperformance_threshold

    @property
    def is_overperforming(self) -> bool:
        return self.has_sample and self.performance_vs_expected > self.config.overperformance_threshold


def should_pause_algorithm(perf: AlgorithmPerformance) -> bool:
    if perf.total_bets >= 15 and perf.performance_vs_expected < -20:
        return True
    if perf.streak <= -8:
        return True
    if perf.total_bets >= 20 and perf.win_rate < 35:
        return True
    return False


def calculate_health_score(perf: AlgorithmPerformance) -> int:
    """0-100 health summary used in calibration reports."""
    score = 50.0
    if perf.total_bets >= 5:
        score += (perf.win_rate - 50) / 50 * 25
    score += perf.performance_vs_expected / 20 * 15
    score += clamp(perf.streak * 2, -10, 10)
    return int(clamp(round(score), 0, 100))


def calculate_adjusted_weight(perf: AlgorithmPerformance, base_weight: float) -> Tuple[float, str]:
    config = perf.config
    if not perf.has_sample:
        return base_weight, "Insufficient data for adjustment"
    if should_pause_algorithm(perf):
        return CALIBRATION_WEIGHT_BOUNDS[0], "Paused due to severe underperformance"

    adjustment = 0.0
    delta = perf.performance_vs_expected
    if perf.is_underperforming:
        adjustment = -min(abs(delta) / 100 * 0.3, config.max_weight_change)
        reason = f"Reduced: {delta:.1f}% below expected"
    elif perf.is_overperforming:
        adjustment = min(delta / 100 * 0.2, config.max_weight_change)
        reason = f"Boosted: {delta:.1f}% above expected"
    else:
        reason = "Performing as expected"

    if perf.streak <= -config.cold_streak_threshold:
        adjustment -= 0.05
        reason += f" (cold streak: {abs(perf.streak)} losses)"
    elif perf.streak >= config.hot_streak_threshold:
        adjustment += 0.03
        reason += f" (hot streak: {perf.streak} wins)"

    return clamp_to(base_weight + adjustment, CALIBRATION_WEIGHT_BOUNDS), reason


def calculate_confidence_multiplier(perf: AlgorithmPerformance) -> float:
    config = perf.config
    if not perf.has_sample:
        return 1.0

    multiplier = 1.0
    error = perf.performance_vs_expected / 100
    if perf.is_underperforming:
        multiplier = 1 - min(abs(error) * 0.5, config.max_confidence_reduction / 100)
    elif perf.is_overperforming:
        multiplier = 1 + min(error * 0.3, config.max_confidence_boost / 100)

    if perf.streak <= -3:
        multiplier *= 0.95
    elif perf.streak >= 3:
        multiplier *= 1.02

    return clamp_to(multiplier, CALIBRATION_MULTIPLIER_BOUNDS)


def calculate_min_threshold(perf: AlgorithmPerformance) -> float:
    base = CALIBRATION_BASE_THRESHOLD
    if not perf.has_sample:
        return base
    if perf.is_underperforming:
        return min(base + min(abs(perf.performance_vs_expected) * 0.3, 15), 75)
    if perf.is_overperforming:
        return max(base - min(perf.performance_vs_expected * 0.2, 10), perf.config.min_confidence_floor)
    return base


# =============================================================================
# CONFIDENCE BINS
# =============================================================================
BIN_START = 50
BIN_END = 95
BIN_WIDTH = 5
BIN_MIN_SAMPLES = 5
BIN_FLAG_SAMPLES = 3
BIN_ERROR_THRESHOLD = 5.0
BIN_OUTPUT_BOUNDS: Tuple[float, float] = (45.0, 95.0)


@dataclass(frozen=True)
class CalibrationBin:
    """Settled picks whose stated confidence fell in [min_confidence, min_confidence + 5)."""
    min_confidence: int
    wins: int = 0
    total: int = 0

    @property
    def max_confidence(self) -> int:
        return self.min_confidence + BIN_WIDTH - 1

    @property
    def label(self) -> str:
        return f"{self.min_confidence}-{self.max_confidence}%"

    @property
    def expected_win_rate(self) -> float:
        return (self.min_confidence + self.max_confidence) / 2

    @property
    def actual_win_rate(self) -> float:
        if self.total == 0:
            return self.expected_win_rate
        return self.wins / self.total * 100

    @property
    def calibration_error(self) -> float:
        return self.actual_win_rate - self.expected_win_rate

    @property
    def is_overconfident(self) -> bool:
        return self.total >= BIN_FLAG_SAMPLES and self.calibration_error < -BIN_ERROR_THRESHOLD

    @property
    def is_underconfident(self) -> bool:
        return self.total >= BIN_FLAG_SAMPLES and self.calibration_error > BIN_ERROR_THRESHOLD

    @property
    def adjustment_factor(self) -> float:
        """Dampened actual/expected ratio; 1.0 below five settled picks."""
        if self.total < BIN_MIN_SAMPLES:
            return 1.0
        ratio = self.actual_win_rate / self.expected_win_rate
        low, high = CALIBRATION_MULTIPLIER_BOUNDS
        if self.is_overconfident:
            return round(low + (max(low, ratio) - low) * 0.8, 2)
        if self.is_underconfident:
            return round(1 + (min(high, ratio) - 1) * 0.5, 2)
        return 1.0

    def to_dict(self):
        return {
            "label": self.label,
            "sample_size": self.total,
            "actual_win_rate": round(self.actual_win_rate, 1),
            "expected_win_rate": self.expected_win_rate,
            "calibration_error": round(self.calibration_error, 1),
            "adjustment_factor": self.adjustment_factor,
        }


def analyze_bins(results: Iterable[Tuple[float, bool]]) -> List[CalibrationBin]:
    """Ten bins, 50-54% through 95-99%, over (confidence, won) pairs."""
    counts = {start: [0, 0] for start in range(BIN_START, BIN_END + 1, BIN_WIDTH)}
    for confidence, won in results:
        if confidence < BIN_START or confidence >= BIN_END + BIN_WIDTH:
            continue
        start = BIN_START + int((confidence - BIN_START) // BIN_WIDTH) * BIN_WIDTH
        counts[start][1] += 1
        if won:
            counts[start][0] += 1
    return [CalibrationBin(start, wins, total) for start, (wins, total) in counts.items()]


def bin_for(bins: Sequence[CalibrationBin], confidence: float) -> CalibrationBin:
    """Bin covering confidence; values outside 50-99 use the nearest end bin."""
    index = int((confidence - BIN_START) // BIN_WIDTH)
    return bins[max(0, min(index, len(bins) - 1))]


@dataclass(frozen=True)
class AlgorithmCalibration:
    algorithm_id: str
    multiplier: float = 1.0
    min_threshold: float = CALIBRATION_BASE_THRESHOLD
    weight: float = DEFAULT_WEIGHT
    reason: str = "No calibration data"
    health_score: int = 50
    has_data: bool = False

    @property
    def is_paused(self) -> bool:
        return self.weight < CALIBRATION_PAUSE_WEIGHT

    def to_dict(self):
        return {
            "algorithm_id": self.algorithm_id,
            "algorithm_name": algorithm_name(self.algorithm_id),
            "multiplier": round(self.multiplier, 4),
            "min_threshold": self.min_threshold,
            "weight": round(self.weight, 4),
            "is_paused": self.is_paused,
            "health_score": self.health_score,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class CalibrationResult:
    adjusted_confidence: float
    raw_confidence: float
    multiplier: float
    meets_threshold: bool
    is_paused: bool
    is_calibrated: bool = False
    bin_factor: float = 1.0

    def to_meta(self) -> CalibrationMeta:
        return CalibrationMeta(
            multiplier=self.multiplier,
            is_paused=self.is_paused,
            meets_threshold=self.meets_threshold,
            is_calibrated=self.is_calibrated,
        )


class CalibrationService:
    """Holds the latest per-algorithm calibration and applies it to raw confidences."""

    def __init__(self, enabled: bool = None):
        self.enabled = Config.CALIBRATION_ENABLED if enabled is None else enabled
        self._calibrations: Dict[str, AlgorithmCalibration] = {}
        self._bins: List[CalibrationBin] = []

    def update_performance(self, perf: AlgorithmPerformance) -> AlgorithmCalibration:
        key = algorithm_key(perf.algorithm_id)
        base_weight = BASE_WEIGHTS.get(key, DEFAULT_WEIGHT)
        weight, reason = calculate_adjusted_weight(perf, base_weight)
        calibration = AlgorithmCalibration(
            algorithm_id=key,
            multiplier=calculate_confidence_multiplier(perf),
            min_threshold=calculate_min_threshold(perf),
            weight=weight,
            reason=reason,
            health_score=calculate_health_score(perf),
            has_data=perf.has_sample,
        )
        self._calibrations[key] = calibration
        logger.info(
            "Calibration updated for %s: weight=%.3f multiplier=%.3f paused=%s",
            algorithm_name(key), calibration.weight, calibration.multiplier, calibration.is_paused,
        )
        return calibration

    def update_many(self, performances: Iterable[AlgorithmPerformance]) -> List[AlgorithmCalibration]:
        return [self.update_performance(perf) for perf in performances]

    def get_calibration(self, algorithm_id: str) -> AlgorithmCalibration:
        key = algorithm_key(algorithm_id)
        calibration = self._calibrations.get(key)
        if calibration is None:
            return AlgorithmCalibration(
                algorithm_id=key,
                weight=BASE_WEIGHTS.get(key, DEFAULT_WEIGHT),
            )
        return calibration

    def update_bins(self, results: Iterable[Tuple[float, bool]]) -> List[CalibrationBin]:
        """Rebuild the confidence bins from settled (confidence, won) pairs across algorithms."""
        self._bins = analyze_bins(results)
        adjusted = [b.label for b in self._bins if b.adjustment_factor != 1.0]
        logger.info("Bin calibration updated: %d of %d bins adjusted %s", len(adjusted), len(self._bins), adjusted)
        return list(self._bins)

    def apply_bins(self, confidence: float) -> Tuple[float, float]:
        """(confidence, factor) after the bin covering confidence; unchanged when that bin is neutral."""
        if not self._bins:
            return confidence, 1.0
        factor = bin_for(self._bins, confidence).adjustment_factor
        if factor == 1.0:
            return confidence, factor
        return round(clamp_to(confidence * factor, BIN_OUTPUT_BOUNDS), 1), factor

    def calibrate(
        self,
        raw_confidence: float,
        algorithm_id: str,
        bounds: Optional[Tuple[float, float]] = None,
    ) -> CalibrationResult:
        """
        Algorithm multiplier, then the confidence bin, then [35, 95].

        bounds: the calling algorithm's own range, applied last.
        """
        calibration = self.get_calibration(algorithm_id)
        multiplier = calibration.multiplier if self.enabled else 1.0
        scaled = raw_confidence * multiplier
        bin_factor = 1.0
        if self.enabled:
            scaled, bin_factor = self.apply_bins(scaled)
        adjusted = clamp_to(round(scaled), CALIBRATED_BOUNDS)
        if bounds is not None:
            adjusted = clamp_to(adjusted, bounds)
        return CalibrationResult(
            adjusted_confidence=adjusted,
            raw_confidence=raw_confidence,
            multiplier=multiplier,
            meets_threshold=scaled >= calibration.min_threshold,
            is_paused=calibration.is_paused if self.enabled else False,
            is_calibrated=self.enabled and (calibration.has_data or bin_factor != 1.0),
            bin_factor=bin_factor,
        )

    def weights(self, algorithm_ids: Optional[Iterable[str]] = None) -> Dict[str, float]:
        ids = list(algorithm_ids) if algorithm_ids is not None else list(BASE_WEIGHTS)
        return {algorithm_key(alg_id): self.get_calibration(alg_id).weight for alg_id in ids}

    def summary(self) -> Dict[str, object]:
        calibrations = [self.get_calibration(alg_id) for alg_id in BASE_WEIGHTS]
        return {
            "has_calibration_data": any(c.has_data for c in calibrations),
            "paused": [algorithm_name(c.algorithm_id) for c in calibrations if c.is_paused],
            "algorithms": [c.to_dict() for c in calibrations],
            "bins": [b.to_dict() for b in self._bins],
        }

    def reset(self) -> None:
        self._calibrations.clear()
        self._bins = []
