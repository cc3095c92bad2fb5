"""
simulation - Stake sizing and what-if replays

- kelly: fractional Kelly stake and Kelly path simulation
- bankroll: bull / realistic / bear bankroll scenarios
- monte_carlo: uncertainty bands for a multi-algorithm pick
- backtest: strategy replay over settled picks
"""

from .kelly import (
    KellyConfig,
    KellySimulation,
    KellyStake,
    american_to_decimal,
    calculate_edge,
    calculate_kelly_stake,
    simulate_kelly_betting,
)

from .bankroll import (
    BankrollScenario,
    simulate_bankroll,
)

from .monte_carlo import (
    MonteCarloResult,
    UncertaintyBand,
    run_monte_carlo,
)

from .backtest import (
    BacktestConfig,
    BacktestResult,
    BacktestStrategy,
    ResampleSummary,
    SettledPick,
    StakeType,
    resample_backtest,
    run_backtest,
)

__all__ = [
    # Kelly
    "KellyConfig",
    "KellyStake",
    "KellySimulation",
    "american_to_decimal",
    "calculate_edge",
    "calculate_kelly_stake",
    "simulate_kelly_betting",
    # Bankroll
    "BankrollScenario",
    "simulate_bankroll",
    # Monte Carlo
    "UncertaintyBand",
    "MonteCarloResult",
    "run_monte_carlo",
    # Backtest
    "BacktestStrategy",
    "StakeType",
    "SettledPick",
    "BacktestConfig",
    "BacktestResult",
    "ResampleSummary",
    "run_backtest",
    "resample_backtest",
]
