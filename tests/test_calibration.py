"""
TEST_CALIBRATION.PY - Performance-driven calibration
====================================================

Run with: python -m pytest tests/test_calibration.py -v
"""

import pytest

from core.algorithm_ids import AlgorithmId
from core.invariants import CALIBRATED_BOUNDS, CALIBRATION_WEIGHT_BOUNDS
from engine.calibration import (
    AlgorithmPerformance,
    CalibrationBin,
    CalibrationService,
    analyze_bins,
    bin_for,
    calculate_confidence_multiplier,
    calculate_health_score,
    should_pause_algorithm,
)
from env_config import Config

ML = AlgorithmId.ML_POWER_INDEX.value


def _underperformer():
    # 8 wins in 20 at a stated 70% -> 30 points below expected
    results = [(70.0, False)] * 2 + [(70.0, True)] * 8 + [(70.0, False)] * 10
    return AlgorithmPerformance.from_results(ML, results)


def _overperformer():
    # 16 wins in 20 at a stated 55% -> 25 points above expected
    results = [(55.0, True)] * 16 + [(55.0, False)] * 4
    return AlgorithmPerformance.from_results(ML, results)


class TestAlgorithmPerformance:
    def test_from_results(self):
        perf = _underperformer()
        assert perf.total_bets == 20
        assert perf.wins == 8
        assert perf.win_rate == 40.0
        assert perf.expected_win_rate == 70.0
        assert perf.streak == -2
        assert perf.is_underperforming

    def test_winning_streak_is_positive(self):
        assert _overperformer().streak == 16

    def test_empty_results(self):
        perf = AlgorithmPerformance.from_results(ML, [])
        assert perf.total_bets == 0
        assert perf.win_rate == 0.0
        assert not perf.has_sample


class TestPauseRules:
    def test_severe_underperformance_pauses(self):
        assert should_pause_algorithm(_underperformer())

    def test_long_cold_streak_pauses(self):
        perf = AlgorithmPerformance(ML, wins=5, losses=8, expected_win_rate=50, streak=-8)
        assert should_pause_algorithm(perf)

    def test_low_win_rate_over_twenty_pauses(self):
        perf = AlgorithmPerformance(ML, wins=6, losses=14, expected_win_rate=40, streak=0)
        assert should_pause_algorithm(perf)

    def test_healthy_algorithm_runs(self):
        assert not should_pause_algorithm(_overperformer())


class TestMultiplier:
    def test_underperformer_shrinks(self):
        assert calculate_confidence_multiplier(_underperformer()) == pytest.approx(0.85)

    def test_overperformer_grows(self):
        # (1 + 0.075) * 1.02 for the hot streak
        assert calculate_confidence_multiplier(_overperformer()) == pytest.approx(1.0965)

    def test_small_sample_is_neutral(self):
        perf = AlgorithmPerformance.from_results(ML, [(70.0, False)] * 5)
        assert calculate_confidence_multiplier(perf) == 1.0

    def test_health_score_bounds(self):
        for perf in (_underperformer(), _overperformer(), AlgorithmPerformance(ML)):
            assert 0 <= calculate_health_score(perf) <= 100


class TestCalibrationService:
    """Applying calibration to raw confidences."""

    def test_uncalibrated_passthrough(self):
        result = CalibrationService().calibrate(64.4, ML)
        assert result.adjusted_confidence == 64
        assert result.multiplier == 1.0
        assert not result.is_calibrated
        assert not result.is_paused

    def test_underperformer_is_paused_and_scaled(self):
        service = CalibrationService()
        calibration = service.update_performance(_underperformer())
        assert calibration.weight == CALIBRATION_WEIGHT_BOUNDS[0]
        assert calibration.is_paused

        result = service.calibrate(80.0, ML)
        assert result.adjusted_confidence == 68
        assert result.is_paused
        assert result.is_calibrated
        assert result.meets_threshold

    def test_overperformer_boosted(self):
        service = CalibrationService()
        calibration = service.update_performance(_overperformer())
        assert calibration.weight == pytest.approx(0.42)
        assert service.calibrate(60.0, ML).adjusted_confidence == 66

    def test_output_clamped(self):
        service = CalibrationService()
        service.update_performance(_overperformer())
        low, high = CALIBRATED_BOUNDS
        assert service.calibrate(99.0, ML).adjusted_confidence == high
        assert service.calibrate(10.0, ML).adjusted_confidence == low

    def test_disabled_service_ignores_data(self):
        service = CalibrationService(enabled=False)
        service.update_performance(_underperformer())
        result = service.calibrate(80.0, ML)
        assert result.adjusted_confidence == 80
        assert not result.is_paused

    def test_enum_and_string_ids_share_state(self):
        service = CalibrationService()
        service.update_performance(_underperformer())
        assert service.get_calibration(AlgorithmId.ML_POWER_INDEX).is_paused

    def test_summary_and_reset(self):
        service = CalibrationService()
        service.update_performance(_underperformer())
        summary = service.summary()
        assert summary["has_calibration_data"]
        assert summary["paused"] == ["ML Power Index"]
        assert len(summary["algorithms"]) == 3

        service.reset()
        assert service.weights()[ML] == pytest.approx(0.34)

    def test_enabled_defaults_to_config(self, monkeypatch):
        monkeypatch.setattr(Config, "CALIBRATION_ENABLED", False)
        assert CalibrationService().enabled is False
        assert CalibrationService(enabled=True).enabled is True

    def test_algorithm_bounds_applied_last(self):
        service = CalibrationService()
        service.update_performance(_overperformer())
        # 85 scaled past 90, then held to the algorithm's own cap
        result = service.calibrate(85.0, ML, bounds=(40, 85))
        assert result.adjusted_confidence == 85
        assert service.calibrate(85.0, ML).adjusted_confidence > 85


def _bin_results(confidence, wins, total):
    return [(confidence, True)] * wins + [(confidence, False)] * (total - wins)


class TestConfidenceBins:
    """Five-point bins over settled picks from every algorithm."""

    def test_analyze_bins_layout(self):
        bins = analyze_bins(_bin_results(72.0, 4, 10) + [(49.0, True), (100.0, True), (99.9, False)])
        assert [b.min_confidence for b in bins] == list(range(50, 100, 5))
        assert bins[4].label == "70-74%"
        assert (bins[4].wins, bins[4].total) == (4, 10)
        assert bins[-1].total == 1
        assert sum(b.total for b in bins) == 11

    def test_bin_for_clamps_to_end_bins(self):
        bins = analyze_bins([])
        assert bin_for(bins, 72).min_confidence == 70
        assert bin_for(bins, 40).min_confidence == 50
        assert bin_for(bins, 120).min_confidence == 95

    def test_overconfident_bin(self):
        b = CalibrationBin(70, wins=4, total=10)
        assert b.expected_win_rate == 72
        assert b.actual_win_rate == 40
        assert b.is_overconfident
        assert b.adjustment_factor == 0.7

    def test_underconfident_bin(self):
        b = CalibrationBin(55, wins=13, total=20)
        assert b.is_underconfident
        # ratio 65 / 57, dampened by half
        assert b.adjustment_factor == 1.07

    def test_small_bin_is_neutral(self):
        b = CalibrationBin(70, wins=0, total=4)
        assert b.is_overconfident
        assert b.adjustment_factor == 1.0

    def test_empty_bin_reports_expected_rate(self):
        b = CalibrationBin(80)
        assert b.actual_win_rate == b.expected_win_rate
        assert b.to_dict()["calibration_error"] == 0

    def test_calibrate_applies_overconfident_bin(self):
        service = CalibrationService()
        service.update_bins(_bin_results(72.0, 4, 10))
        result = service.calibrate(72.0, ML)
        # 72 * 0.7 = 50.4
        assert result.adjusted_confidence == 50
        assert result.bin_factor == 0.7
        assert result.is_calibrated

    def test_calibrate_applies_underconfident_bin(self):
        service = CalibrationService()
        service.update_bins(_bin_results(57.0, 13, 20))
        assert service.calibrate(57.0, ML).adjusted_confidence == 61

    def test_neutral_bin_leaves_confidence(self):
        service = CalibrationService()
        service.update_bins(_bin_results(72.0, 4, 10))
        result = service.calibrate(62.0, ML)
        assert result.adjusted_confidence == 62
        assert result.bin_factor == 1.0
        assert not result.is_calibrated

    def test_disabled_service_ignores_bins(self):
        service = CalibrationService(enabled=False)
        service.update_bins(_bin_results(72.0, 4, 10))
        assert service.calibrate(72.0, ML).adjusted_confidence == 72

    def test_reset_clears_bins(self):
        service = CalibrationService()
        service.update_bins(_bin_results(72.0, 4, 10))
        assert len(service.summary()["bins"]) == 10
        service.reset()
        assert service.calibrate(72.0, ML).adjusted_confidence == 72
