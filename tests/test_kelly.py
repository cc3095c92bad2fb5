"""
TEST_KELLY.PY - Kelly Criterion stake sizing
============================================

Run with: python -m pytest tests/test_kelly.py -v
"""

import pytest

from match_schema import RiskLevel
from simulation.kelly import (
    KellyConfig,
    american_to_decimal,
    calculate_edge,
    calculate_kelly_stake,
    simulate_kelly_betting,
)


def _config(p, odds=2.0, bankroll=1000.0, **overrides):
    params = dict(kelly_fraction=0.25, min_ev_pct=3.0, max_bet_pct=5.0)
    params.update(overrides)
    return KellyConfig(true_probability=p, decimal_odds=odds, bankroll=bankroll, **params)


class TestStake:
    """Fractional Kelly with caps."""

    def test_capped_at_max_bet(self):
        stake = calculate_kelly_stake(_config(0.6))
        assert stake.full_kelly == pytest.approx(0.2)
        assert stake.recommended_stake == 50
        assert stake.recommended_stake_pct == 5
        assert stake.recommended_stake_units == 5
        assert stake.risk_level is RiskLevel.HIGH
        assert stake.ev_percentage == pytest.approx(20.0)

    def test_medium_risk(self):
        stake = calculate_kelly_stake(_config(0.55))
        assert stake.recommended_stake == 25
        assert stake.risk_level is RiskLevel.MEDIUM
        assert stake.expected_growth > 0

    def test_below_min_ev(self):
        stake = calculate_kelly_stake(_config(0.51))
        assert stake.recommended_stake == 0
        assert stake.is_positive_ev
        assert "below" in stake.recommendation

    def test_negative_ev(self):
        stake = calculate_kelly_stake(_config(0.4))
        assert stake.recommended_stake == 0
        assert not stake.is_positive_ev
        assert stake.recommendation == "No bet: Negative expected value"

    def test_custom_unit_size(self):
        stake = calculate_kelly_stake(_config(0.6, unit_size=25))
        assert stake.recommended_stake_units == 2

    @pytest.mark.parametrize("p,odds,bankroll", [(0, 2.0, 100), (1, 2.0, 100), (0.5, 1.0, 100), (0.5, 2.0, 0)])
    def test_invalid_inputs(self, p, odds, bankroll):
        with pytest.raises(ValueError):
            calculate_kelly_stake(_config(p, odds, bankroll))


class TestConversions:
    def test_american_to_decimal(self):
        assert american_to_decimal(-110) == pytest.approx(1.909, abs=1e-3)
        assert american_to_decimal(150) == 2.5
        with pytest.raises(ValueError):
            american_to_decimal(0)

    def test_edge(self):
        assert calculate_edge(0.6, 2.0) == pytest.approx(0.1)


class TestSimulation:
    def test_positive_edge_grows(self):
        sim = simulate_kelly_betting(_config(0.6), num_bets=1000, num_simulations=100, seed=7)
        assert sim.probability_of_profit > 0.9
        assert sim.average_final_bankroll > 1000
        assert sim.worst_case <= sim.median_final_bankroll <= sim.best_case

    def test_seeded_runs_repeat(self):
        first = simulate_kelly_betting(_config(0.55), num_bets=200, num_simulations=50, seed=3)
        second = simulate_kelly_betting(_config(0.55), num_bets=200, num_simulations=50, seed=3)
        assert first.to_dict() == second.to_dict()

    def test_no_stake_no_movement(self):
        sim = simulate_kelly_betting(_config(0.4), num_bets=100, num_simulations=20, seed=1)
        assert sim.best_case == sim.worst_case == 1000
        assert sim.probability_of_profit == 0
        assert sim.probability_of_ruin == 0
