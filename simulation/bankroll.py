"""
BANKROLL.PY - Bull / realistic / bear bankroll scenarios
========================================================

Each scenario replays num_bets Kelly-sized bets over num_simulations paths:

    edge        = win_rate * avg_odds - 1
    stake pct   = min(max(0, edge / (avg_odds - 1) * kelly_fraction), max_bet_pct / 100)
    ruin        = bankroll below 10% of start (path stops)

bull and bear shift the win rate by +/-0.05, bounded to [0.45, 0.65].
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from env_config import Config

logger = logging.getLogger(__name__)

RUIN_FRACTION = 0.10
SCENARIO_SHIFT = 0.05
BULL_CAP = 0.65
BEAR_FLOOR = 0.45


@dataclass
class BankrollScenario:
    scenario: str
    win_rate: float
    avg_odds: float
    num_bets: int
    probability_of_profit: float
    probability_of_ruin: float
    max_drawdown: float
    sharpe_ratio: float
    expected_growth: float
    median_path: List[float] = field(default_factory=list)

    def to_dict(self):
        return {
            "scenario": self.scenario,
            "win_rate": self.win_rate,
            "avg_odds": self.avg_odds,
            "num_bets": self.num_bets,
            "probability_of_profit": self.probability_of_profit,
            "probability_of_ruin": self.probability_of_ruin,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "expected_growth": self.expected_growth,
            "median_path": self.median_path,
        }


def kelly_stake_pct(win_rate: float, avg_odds: float, kelly_fraction: float, max_bet_pct: float) -> float:
    edge = win_rate * avg_odds - 1
    stake = max(0.0, edge / (avg_odds - 1) * kelly_fraction)
    return min(stake, max_bet_pct / 100)


def simulate_scenario(
    scenario: str,
    starting_bankroll: float,
    win_rate: float,
    avg_odds: float,
    num_bets: int,
    kelly_fraction: float,
    max_bet_pct: float,
    num_simulations: int,
    rng: np.random.Generator,
) -> BankrollScenario:
    stake_pct = kelly_stake_pct(win_rate, avg_odds, kelly_fraction, max_bet_pct)

    bankroll = np.full(num_simulations, float(starting_bankroll))
    peak = bankroll.copy()
    max_drawdown = np.zeros(num_simulations)
    alive = np.ones(num_simulations, dtype=bool)
    ruined = np.zeros(num_simulations, dtype=bool)
    paths = np.full((num_simulations, num_bets + 1), np.nan)
    paths[:, 0] = bankroll

    for step in range(1, num_bets + 1):
        if not alive.any():
            break
        stake = bankroll * stake_pct
        won = rng.random(num_simulations) < win_rate
        change = np.where(won, stake * (avg_odds - 1), -stake)
        bankroll = np.where(alive, bankroll + change, bankroll)

        peak = np.maximum(peak, bankroll)
        max_drawdown = np.maximum(max_drawdown, (peak - bankroll) / peak)
        paths[alive, step] = bankroll[alive]

        newly_ruined = alive & (bankroll < starting_bankroll * RUIN_FRACTION)
        ruined |= newly_ruined
        alive &= ~newly_ruined

    median_path = []
    for column in paths.T:
        values = column[~np.isnan(column)]
        if values.size == 0:
            break
        median_path.append(round(float(np.median(values)), 2))

    returns = (bankroll - starting_bankroll) / starting_bankroll
    std = float(np.std(returns))
    sharpe = float(np.mean(returns)) / std if std > 0 else 0.0

    return BankrollScenario(
        scenario=scenario,
        win_rate=round(win_rate, 4),
        avg_odds=avg_odds,
        num_bets=num_bets,
        probability_of_profit=float(np.mean(bankroll > starting_bankroll)),
        probability_of_ruin=float(np.mean(ruined)),
        max_drawdown=round(float(np.mean(max_drawdown)), 4),
        sharpe_ratio=round(sharpe, 4),
        expected_growth=round(float(np.mean(returns)) * 100, 2),
        median_path=median_path,
    )


def simulate_bankroll(
    starting_bankroll: float,
    win_rate: float,
    avg_odds: float,
    num_bets: int = 100,
    kelly_fraction: float = None,
    max_bet_pct: float = None,
    num_simulations: int = 1000,
    seed: Optional[int] = None,
) -> List[BankrollScenario]:
    """
    Bull, realistic and bear scenarios, in that order.

    Raises:
        ValueError: On a non-positive bankroll, win_rate outside (0, 1) or odds <= 1
    """
    if starting_bankroll <= 0:
        raise ValueError("starting_bankroll must be positive")
    if not 0 < win_rate < 1:
        raise ValueError("win_rate must be between 0 and 1")
    if avg_odds <= 1:
        raise ValueError("avg_odds must be greater than 1")

    kelly_fraction = Config.KELLY_FRACTION if kelly_fraction is None else kelly_fraction
    max_bet_pct = Config.KELLY_MAX_BET_PCT if max_bet_pct is None else max_bet_pct
    rng = np.random.default_rng(seed)

    rates = (
        ("bull", min(win_rate + SCENARIO_SHIFT, BULL_CAP)),
        ("realistic", win_rate),
        ("bear", max(win_rate - SCENARIO_SHIFT, BEAR_FLOOR)),
    )
    scenarios = [
        simulate_scenario(name, starting_bankroll, rate, avg_odds, num_bets,
                          kelly_fraction, max_bet_pct, num_simulations, rng)
        for name, rate in rates
    ]
    logger.debug("Bankroll scenarios: %s", {s.scenario: s.expected_growth for s in scenarios})
    return scenarios
