"""
KELLY.PY - Kelly Criterion stake sizing
=======================================

    f* = (b * p - q) / b        b = decimal odds - 1, q = 1 - p

The stake is fractional Kelly (default 1/4), capped at max_bet_pct of the
bankroll, and zero when the bet's EV% is below min_ev_pct.

Usage:
    from simulation.kelly import KellyConfig, calculate_kelly_stake

    result = calculate_kelly_stake(KellyConfig(true_probability=0.58, decimal_odds=1.95, bankroll=1000))
    result.recommended_stake, result.risk_level
"""

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from env_config import Config
from match_schema import RiskLevel

RUIN_FRACTION = 0.10


@dataclass(frozen=True)
class KellyConfig:
    """
    Attributes:
        true_probability: Model win probability (0-1, exclusive)
        decimal_odds: Bookmaker decimal price (> 1)
        bankroll: Current bankroll (> 0)
        kelly_fraction: Share of full Kelly to stake
        unit_size: One betting unit; defaults to 1% of bankroll
        min_ev_pct: Minimum EV% to bet at all
        max_bet_pct: Stake cap as % of bankroll
    """
    true_probability: float
    decimal_odds: float
    bankroll: float
    kelly_fraction: float = field(default_factory=lambda: Config.KELLY_FRACTION)
    unit_size: Optional[float] = None
    min_ev_pct: float = field(default_factory=lambda: Config.KELLY_MIN_EV_PCT)
    max_bet_pct: float = field(default_factory=lambda: Config.KELLY_MAX_BET_PCT)

    def validate(self) -> None:
        if not 0 < self.true_probability < 1:
            raise ValueError("true_probability must be between 0 and 1")
        if self.decimal_odds <= 1:
            raise ValueError("decimal_odds must be greater than 1")
        if self.bankroll <= 0:
            raise ValueError("bankroll must be positive")


@dataclass
class KellyStake:
    full_kelly: float
    adjusted_kelly: float
    recommended_stake: float
    recommended_stake_pct: float
    recommended_stake_units: float
    expected_value: float
    ev_percentage: float
    edge: float
    expected_growth: float
    is_positive_ev: bool
    risk_level: RiskLevel
    recommendation: str

    def to_dict(self):
        return {
            "full_kelly": self.full_kelly,
            "adjusted_kelly": self.adjusted_kelly,
            "recommended_stake": self.recommended_stake,
            "recommended_stake_pct": self.recommended_stake_pct,
            "recommended_stake_units": self.recommended_stake_units,
            "expected_value": self.expected_value,
            "ev_percentage": self.ev_percentage,
            "edge": self.edge,
            "expected_growth": self.expected_growth,
            "is_positive_ev": self.is_positive_ev,
            "risk_level": self.risk_level.value,
            "recommendation": self.recommendation,
        }


def american_to_decimal(american_odds: float) -> float:
    if american_odds == 0:
        raise ValueError("American odds cannot be 0")
    if american_odds > 0:
        return american_odds / 100 + 1
    return 100 / abs(american_odds) + 1


def calculate_edge(true_probability: float, decimal_odds: float) -> float:
    """Model probability minus the book's implied probability."""
    return true_probability - 1 / decimal_odds


def _risk_level(fraction: float) -> RiskLevel:
    if fraction < 0.02:
        return RiskLevel.LOW
    if fraction < 0.05:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def calculate_kelly_stake(config: KellyConfig) -> KellyStake:
    """
    Raises:
        ValueError: If probability, odds or bankroll are out of range
    """
    config.validate()
    p = config.true_probability
    q = 1 - p
    b = config.decimal_odds - 1
    unit_size = config.unit_size or config.bankroll / 100

    ev = p * b - q
    ev_pct = ev * 100
    edge = calculate_edge(p, config.decimal_odds)
    full = (b * p - q) / b

    if ev <= 0 or ev_pct < config.min_ev_pct or full <= 0:
        reason = "Negative expected value" if ev <= 0 else f"EV {ev_pct:.1f}% below {config.min_ev_pct:.1f}% minimum"
        return KellyStake(
            full_kelly=0.0,
            adjusted_kelly=0.0,
            recommended_stake=0.0,
            recommended_stake_pct=0.0,
            recommended_stake_units=0.0,
            expected_value=round(ev, 4),
            ev_percentage=round(ev_pct, 2),
            edge=round(edge, 4),
            expected_growth=0.0,
            is_positive_ev=ev > 0,
            risk_level=RiskLevel.LOW,
            recommendation=f"No bet: {reason}",
        )

    fraction = min(max(0.0, full * config.kelly_fraction), config.max_bet_pct / 100)
    stake = config.bankroll * fraction
    growth = p * math.log(1 + b * fraction) + q * math.log(1 - fraction)
    risk = _risk_level(fraction)

    return KellyStake(
        full_kelly=round(full, 4),
        adjusted_kelly=round(fraction, 4),
        recommended_stake=round(stake, 2),
        recommended_stake_pct=round(fraction * 100, 2),
        recommended_stake_units=round(stake / unit_size, 2),
        expected_value=round(ev, 4),
        ev_percentage=round(ev_pct, 2),
        edge=round(edge, 4),
        expected_growth=round(growth, 4),
        is_positive_ev=True,
        risk_level=risk,
        recommendation=f"Bet {fraction * 100:.2f}% of bankroll ({risk.value} risk, EV {ev_pct:+.1f}%)",
    )


@dataclass
class KellySimulation:
    average_final_bankroll: float
    median_final_bankroll: float
    best_case: float
    worst_case: float
    probability_of_profit: float
    probability_of_ruin: float

    def to_dict(self):
        return {
            "average_final_bankroll": self.average_final_bankroll,
            "median_final_bankroll": self.median_final_bankroll,
            "best_case": self.best_case,
            "worst_case": self.worst_case,
            "probability_of_profit": self.probability_of_profit,
            "probability_of_ruin": self.probability_of_ruin,
        }


def simulate_kelly_betting(
    config: KellyConfig,
    num_bets: int = 1000,
    num_simulations: int = 100,
    seed: Optional[int] = None,
) -> KellySimulation:
    """Replay the Kelly fraction over independent bet sequences; ruin is < 10% of start."""
    stake = calculate_kelly_stake(config)
    rng = np.random.default_rng(seed)
    wins = rng.random((num_simulations, num_bets)) < config.true_probability

    # Each bet multiplies the bankroll by (1 + f*b) on a win and (1 - f) on a loss
    f = stake.adjusted_kelly
    growth = np.where(wins, 1 + f * (config.decimal_odds - 1), 1 - f)
    finals = config.bankroll * np.prod(growth, axis=1)

    return KellySimulation(
        average_final_bankroll=round(float(np.mean(finals)), 2),
        median_final_bankroll=round(float(np.median(finals)), 2),
        best_case=round(float(np.max(finals)), 2),
        worst_case=round(float(np.min(finals)), 2),
        probability_of_profit=float(np.mean(finals > config.bankroll)),
        probability_of_ruin=float(np.mean(finals < config.bankroll * RUIN_FRACTION)),
    )
