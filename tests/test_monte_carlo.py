"""
TEST_MONTE_CARLO.PY - Uncertainty bands for multi-algorithm picks
=================================================================

Run with: python -m pytest tests/test_monte_carlo.py -v
"""

import numpy as np
import pytest

from core.algorithm_ids import AlgorithmId
from match_schema import Prediction, ProjectedScore, Side
from simulation.monte_carlo import UncertaintyBand, build_band, calibration_signal, run_monte_carlo
from validators.consensus import AlgorithmWeight

ML = AlgorithmId.ML_POWER_INDEX.value
VPF = AlgorithmId.VALUE_PICK_FINDER.value
SE = AlgorithmId.STATISTICAL_EDGE.value


def _picks(side=Side.HOME, confidence=80.0, **fields):
    return {alg: Prediction(recommended=side, confidence=confidence, **fields) for alg in (ML, VPF, SE)}


class TestBands:
    def test_build_band(self):
        band = build_band(np.arange(100), (10, 90))
        assert band.lower == 10
        assert band.upper == 90
        assert band.point == 49.5
        assert band.width_pct == 162

    def test_empty_band(self):
        assert build_band(np.array([]), (10, 90)) == UncertaintyBand()

    @pytest.mark.parametrize("band,signal", [
        (UncertaintyBand(point=60, lower=40, upper=70), "uncertain"),
        (UncertaintyBand(point=68, lower=58, upper=70), "overconfident"),
        (UncertaintyBand(point=60, lower=58, upper=70), "underconfident"),
        (UncertaintyBand(point=64, lower=58, upper=70), "well-calibrated"),
    ])
    def test_calibration_signal(self, band, signal):
        assert calibration_signal(band) == signal


class TestRunMonteCarlo:
    """Noisy re-votes of the algorithm picks."""

    def test_unanimous_pick_is_stable(self):
        result = run_monte_carlo(_picks(), samples=200, seed=7)
        assert result.samples == 200
        assert result.pick_stability == 1.0
        assert result.pick_distribution == {"home": 1.0}
        assert result.confidence.lower < result.confidence.point < result.confidence.upper
        assert result.projected_home == UncertaintyBand()

    def test_projected_scores_get_bands(self):
        picks = _picks(projected_score=ProjectedScore(home=112, away=104))
        result = run_monte_carlo(picks, samples=100, seed=3)
        assert result.projected_home.point > result.projected_away.point

    def test_vote_follows_recommended_side(self):
        """A home-leaning projected score does not overturn an away pick."""
        picks = _picks(side=Side.AWAY, projected_score=ProjectedScore(home=112, away=104))
        result = run_monte_carlo(picks, samples=200, seed=5)
        assert result.pick_distribution == {"away": 1.0}
        assert result.projected_home.point > result.projected_away.point

    def test_draw_picks_vote_skip(self):
        picks = _picks(side=Side.DRAW, projected_score=ProjectedScore(home=1, away=1))
        result = run_monte_carlo(picks, samples=100, seed=2)
        assert result.pick_distribution == {"skip": 1.0}

    def test_low_confidence_votes_skip(self):
        result = run_monte_carlo(_picks(confidence=20.0), samples=100, seed=1)
        assert result.pick_distribution == {"skip": 1.0}

    def test_seeded_runs_repeat(self):
        picks = _picks(confidence=62.0)
        assert run_monte_carlo(picks, samples=50, seed=9).to_dict() == run_monte_carlo(picks, samples=50, seed=9).to_dict()

    def test_weights_shift_the_vote(self):
        picks = {
            ML: Prediction(recommended=Side.HOME, confidence=80),
            VPF: Prediction(recommended=Side.AWAY, confidence=80),
        }
        weights = [AlgorithmWeight(ML, 0.05), AlgorithmWeight(VPF, 0.6)]
        result = run_monte_carlo(picks, weights, samples=100, seed=4)
        assert result.pick_distribution == {"away": 1.0}

    def test_nothing_to_simulate(self):
        assert run_monte_carlo({}, samples=10).samples == 10
        assert run_monte_carlo(_picks(), samples=0).pick_distribution == {}
