"""
BACKTEST.PY - Strategy replay over settled algorithm picks
==========================================================

Groups settled picks by match, chooses one pick per match with a strategy,
sizes the stake and settles it at -110 (a win pays stake * 0.9091).

Strategies:
    all_agree           every algorithm (3+) agrees; follow the most confident
    majority_agree      2+ agree; follow the most confident of the majority
    highest_confidence  follow the most confident algorithm
    best_performer      follow the algorithm with the best win rate in the data
    <algorithm id>      always follow that algorithm

Stakes:
    flat        stake_amount per bet (capped at the bankroll)
    percentage  stake_amount % of the bankroll
    kelly       edge = confidence - 0.5238; fraction = edge / (1 - 0.5238) * stake_amount / 100,
                capped at 25% of the bankroll

Usage:
    result = run_backtest(settled_picks, BacktestConfig(strategy=BacktestStrategy.MAJORITY_AGREE))
    result.total_profit, result.max_drawdown, result.bet_history[0].to_dict()

    spread = resample_backtest(result, iterations=500, seed=1)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from core.algorithm_ids import AlgorithmId, algorithm_key
from match_schema import Side

logger = logging.getLogger(__name__)

WIN_PAYOUT = 0.9091
IMPLIED_PROBABILITY = 0.5238
KELLY_CAP = 0.25
AMERICAN_ODDS = -110


class BacktestStrategy(str, Enum):
    ALL_AGREE = "all_agree"
    MAJORITY_AGREE = "majority_agree"
    HIGHEST_CONFIDENCE = "highest_confidence"
    BEST_PERFORMER = "best_performer"
    ML_POWER_INDEX = "ml_power_index"
    VALUE_PICK_FINDER = "value_pick_finder"
    STATISTICAL_EDGE = "statistical_edge"


class StakeType(str, Enum):
    FLAT = "flat"
    PERCENTAGE = "percentage"
    KELLY = "kelly"


_SINGLE_ALGORITHM = {
    BacktestStrategy.ML_POWER_INDEX: AlgorithmId.ML_POWER_INDEX.value,
    BacktestStrategy.VALUE_PICK_FINDER: AlgorithmId.VALUE_PICK_FINDER.value,
    BacktestStrategy.STATISTICAL_EDGE: AlgorithmId.STATISTICAL_EDGE.value,
}

STRATEGY_NAMES = {
    BacktestStrategy.ALL_AGREE: "All 3 Agree",
    BacktestStrategy.MAJORITY_AGREE: "2+ Agree (Majority)",
    BacktestStrategy.HIGHEST_CONFIDENCE: "Highest Confidence",
    BacktestStrategy.BEST_PERFORMER: "Best Performer",
    BacktestStrategy.ML_POWER_INDEX: "ML Power Index",
    BacktestStrategy.VALUE_PICK_FINDER: "Value Pick Finder",
    BacktestStrategy.STATISTICAL_EDGE: "Statistical Edge",
}


# =============================================================================
# RECORDS
# =============================================================================


@dataclass(frozen=True)
class SettledPick:
    """One algorithm's graded pick for one match."""
    match_id: str
    algorithm_id: str
    prediction: str
    confidence: float
    won: bool
    predicted_at: datetime
    match_title: str = "Unknown"
    league: str = "Unknown"
    side: Optional[Side] = None

    @property
    def is_home_pick(self) -> bool:
        if self.side is not None:
            return self.side == Side.HOME
        return "home" in self.prediction.lower()


@dataclass
class BacktestConfig:
    strategy: BacktestStrategy = BacktestStrategy.MAJORITY_AGREE
    starting_bankroll: float = 1000.0
    stake_type: StakeType = StakeType.FLAT
    stake_amount: float = 10.0
    min_confidence: float = 0.0
    min_algorithms_agreeing: int = 1
    home_away_filter: Optional[Side] = None

    def __post_init__(self):
        self.strategy = BacktestStrategy(self.strategy)
        self.stake_type = StakeType(self.stake_type)
        if self.starting_bankroll <= 0:
            raise ValueError("starting_bankroll must be positive")
        if self.stake_amount < 0:
            raise ValueError("stake_amount cannot be negative")


@dataclass
class BacktestBet:
    date: date
    match_title: str
    league: str
    prediction: str
    confidence: float
    stake: float
    result: str
    profit: float
    bankroll_after: float
    strategy: str
    algorithms_agreed: int
    odds: int = AMERICAN_ODDS

    @property
    def won(self) -> bool:
        return self.result == "won"

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "match_title": self.match_title,
            "league": self.league,
            "prediction": self.prediction,
            "confidence": self.confidence,
            "stake": round(self.stake, 2),
            "odds": self.odds,
            "result": self.result,
            "profit": round(self.profit, 2),
            "bankroll_after": round(self.bankroll_after, 2),
            "strategy": self.strategy,
            "algorithms_agreed": self.algorithms_agreed,
        }


@dataclass
class DailyProfit:
    date: date
    profit: float
    cumulative: float
    bankroll: float

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "profit": round(self.profit, 2),
            "cumulative": round(self.cumulative, 2),
            "bankroll": round(self.bankroll, 2),
        }


@dataclass
class BacktestResult:
    config: BacktestConfig
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    roi: float = 0.0
    final_bankroll: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0
    longest_win_streak: int = 0
    longest_lose_streak: int = 0
    avg_bet_size: float = 0.0
    best_day: Optional[DailyProfit] = None
    worst_day: Optional[DailyProfit] = None
    skipped_by_filters: int = 0
    profit_by_day: List[DailyProfit] = field(default_factory=list)
    bet_history: List[BacktestBet] = field(default_factory=list)

    def to_dict(self):
        return {
            "strategy": self.config.strategy.value,
            "total_bets": self.total_bets,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 2),
            "total_profit": round(self.total_profit, 2),
            "roi": round(self.roi, 2),
            "final_bankroll": round(self.final_bankroll, 2),
            "max_drawdown": round(self.max_drawdown, 2),
            "max_drawdown_pct": round(self.max_drawdown_pct, 2),
            "longest_win_streak": self.longest_win_streak,
            "longest_lose_streak": self.longest_lose_streak,
            "avg_bet_size": round(self.avg_bet_size, 2),
            "best_day": self.best_day.to_dict() if self.best_day else None,
            "worst_day": self.worst_day.to_dict() if self.worst_day else None,
            "skipped_by_filters": self.skipped_by_filters,
            "profit_by_day": [d.to_dict() for d in self.profit_by_day],
            "bet_history": [b.to_dict() for b in self.bet_history],
        }


# =============================================================================
# SELECTION / STAKING
# =============================================================================


def _most_confident(picks: Sequence[SettledPick]) -> SettledPick:
    return max(picks, key=lambda p: p.confidence)


def algorithm_win_rates(picks: Iterable[SettledPick]) -> Dict[str, float]:
    totals: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for pick in picks:
        stats = totals[algorithm_key(pick.algorithm_id)]
        stats[1] += 1
        if pick.won:
            stats[0] += 1
    return {alg_id: wins / total for alg_id, (wins, total) in totals.items() if total}


def select_pick(
    strategy: BacktestStrategy,
    picks: Sequence[SettledPick],
    win_rates: Dict[str, float],
) -> Tuple[Optional[SettledPick], int]:
    """(chosen pick, number of algorithms agreeing with it) for one match."""
    groups: Dict[str, List[SettledPick]] = defaultdict(list)
    for pick in picks:
        groups[pick.prediction].append(pick)
    majority = max(groups.values(), key=len)

    def agreeing(pick: SettledPick) -> int:
        return len(groups[pick.prediction])

    if strategy is BacktestStrategy.ALL_AGREE:
        if len(picks) >= 3 and len(majority) == len(picks):
            return _most_confident(picks), len(picks)
        return None, 0

    if strategy is BacktestStrategy.MAJORITY_AGREE:
        if len(majority) >= 2:
            return _most_confident(majority), len(majority)
        return None, 0

    if strategy is BacktestStrategy.HIGHEST_CONFIDENCE:
        chosen = _most_confident(picks)
        return chosen, agreeing(chosen)

    if strategy is BacktestStrategy.BEST_PERFORMER:
        chosen, best = None, 0.0
        for pick in picks:
            rate = win_rates.get(algorithm_key(pick.algorithm_id), 0.0)
            if rate > best:
                chosen, best = pick, rate
        return chosen, agreeing(chosen) if chosen else 0

    target = _SINGLE_ALGORITHM[strategy]
    for pick in picks:
        if algorithm_key(pick.algorithm_id) == target:
            return pick, agreeing(pick)
    return None, 0


def calculate_stake(config: BacktestConfig, bankroll: float, confidence: float) -> float:
    if bankroll <= 0:
        return 0.0
    if config.stake_type is StakeType.FLAT:
        return min(config.stake_amount, bankroll)
    if config.stake_type is StakeType.PERCENTAGE:
        return min(bankroll * config.stake_amount / 100, bankroll)

    edge = confidence / 100 - IMPLIED_PROBABILITY
    if edge <= 0:
        return 0.0
    fraction = edge / (1 - IMPLIED_PROBABILITY) * (config.stake_amount / 100)
    return min(bankroll * fraction, bankroll * KELLY_CAP)


# =============================================================================
# REPLAY
# =============================================================================


@dataclass
class _Ledger:
    bankroll: float
    peak: float
    staked: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_pct: float = 0.0
    win_streak: int = 0
    lose_streak: int = 0
    longest_win: int = 0
    longest_lose: int = 0

    def settle(self, stake: float, won: bool) -> float:
        profit = stake * WIN_PAYOUT if won else -stake
        self.bankroll += profit
        self.staked += stake
        self.peak = max(self.peak, self.bankroll)
        drawdown = self.peak - self.bankroll
        if drawdown > self.max_drawdown:
            self.max_drawdown = drawdown
            self.max_drawdown_pct = drawdown / self.peak * 100
        if won:
            self.win_streak += 1
            self.lose_streak = 0
            self.longest_win = max(self.longest_win, self.win_streak)
        else:
            self.lose_streak += 1
            self.win_streak = 0
            self.longest_lose = max(self.longest_lose, self.lose_streak)
        return profit


def run_backtest(picks: Iterable[SettledPick], config: Optional[BacktestConfig] = None) -> BacktestResult:
    config = config or BacktestConfig()
    picks = list(picks)
    win_rates = algorithm_win_rates(picks)

    by_match: Dict[str, List[SettledPick]] = defaultdict(list)
    for pick in picks:
        by_match[pick.match_id].append(pick)
    ordered = sorted(by_match.values(), key=lambda group: min(p.predicted_at for p in group))

    ledger = _Ledger(bankroll=config.starting_bankroll, peak=config.starting_bankroll)
    result = BacktestResult(config=config)
    daily: Dict[date, float] = defaultdict(float)
    strategy_name = STRATEGY_NAMES[config.strategy]

    for group in ordered:
        chosen, agreed = select_pick(config.strategy, group, win_rates)
        if chosen is None or chosen.confidence < config.min_confidence:
            continue
        if config.home_away_filter is not None and chosen.is_home_pick != (config.home_away_filter == Side.HOME):
            result.skipped_by_filters += 1
            continue
        if agreed < config.min_algorithms_agreeing:
            result.skipped_by_filters += 1
            continue

        stake = calculate_stake(config, ledger.bankroll, chosen.confidence)
        if stake <= 0 or stake > ledger.bankroll:
            continue

        profit = ledger.settle(stake, chosen.won)
        day = chosen.predicted_at.date()
        daily[day] += profit
        result.bet_history.append(BacktestBet(
            date=day,
            match_title=chosen.match_title,
            league=chosen.league,
            prediction=chosen.prediction,
            confidence=chosen.confidence,
            stake=stake,
            result="won" if chosen.won else "lost",
            profit=profit,
            bankroll_after=ledger.bankroll,
            strategy=strategy_name,
            algorithms_agreed=agreed,
        ))

    cumulative = 0.0
    for day in sorted(daily):
        cumulative += daily[day]
        result.profit_by_day.append(DailyProfit(
            date=day,
            profit=daily[day],
            cumulative=cumulative,
            bankroll=config.starting_bankroll + cumulative,
        ))
    if result.profit_by_day:
        result.best_day = max(result.profit_by_day, key=lambda d: d.profit)
        result.worst_day = min(result.profit_by_day, key=lambda d: d.profit)

    result.wins = sum(1 for bet in result.bet_history if bet.won)
    result.total_bets = len(result.bet_history)
    result.losses = result.total_bets - result.wins
    result.win_rate = result.wins / result.total_bets * 100 if result.total_bets else 0.0
    result.final_bankroll = ledger.bankroll
    result.total_profit = ledger.bankroll - config.starting_bankroll
    result.roi = result.total_profit / ledger.staked * 100 if ledger.staked else 0.0
    result.max_drawdown = ledger.max_drawdown
    result.max_drawdown_pct = ledger.max_drawdown_pct
    result.longest_win_streak = ledger.longest_win
    result.longest_lose_streak = ledger.longest_lose
    result.avg_bet_size = ledger.staked / result.total_bets if result.total_bets else 0.0

    logger.info(
        "Backtest %s: %d bets, win rate %.1f%%, profit %.2f",
        config.strategy.value, result.total_bets, result.win_rate, result.total_profit,
    )
    return result


# =============================================================================
# RESAMPLING
# =============================================================================


@dataclass
class ResampleSummary:
    iterations: int
    profit_p5: float
    profit_median: float
    profit_p95: float
    drawdown_median: float
    drawdown_p95: float
    probability_of_profit: float

    def to_dict(self):
        return {
            "iterations": self.iterations,
            "profit_p5": self.profit_p5,
            "profit_median": self.profit_median,
            "profit_p95": self.profit_p95,
            "drawdown_median": self.drawdown_median,
            "drawdown_p95": self.drawdown_p95,
            "probability_of_profit": self.probability_of_profit,
        }


def resample_backtest(
    result: BacktestResult,
    iterations: int = 500,
    seed: Optional[int] = None,
    bootstrap: bool = False,
) -> ResampleSummary:
    """
    Replay the settled bets in shuffled order (or, with bootstrap, drawn with
    replacement) using the original staking rules.
    """
    bets = result.bet_history
    if not bets or iterations <= 0:
        return ResampleSummary(max(iterations, 0), 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    config = result.config
    rng = np.random.default_rng(seed)
    outcomes = np.array([bet.won for bet in bets])
    confidences = np.array([bet.confidence for bet in bets])
    n = len(bets)

    profits = np.empty(iterations)
    drawdowns = np.empty(iterations)
    for i in range(iterations):
        order = rng.integers(0, n, n) if bootstrap else rng.permutation(n)
        ledger = _Ledger(bankroll=config.starting_bankroll, peak=config.starting_bankroll)
        for idx in order:
            stake = calculate_stake(config, ledger.bankroll, float(confidences[idx]))
            if 0 < stake <= ledger.bankroll:
                ledger.settle(stake, bool(outcomes[idx]))
        profits[i] = ledger.bankroll - config.starting_bankroll
        drawdowns[i] = ledger.max_drawdown

    return ResampleSummary(
        iterations=iterations,
        profit_p5=round(float(np.percentile(profits, 5)), 2),
        profit_median=round(float(np.median(profits)), 2),
        profit_p95=round(float(np.percentile(profits, 95)), 2),
        drawdown_median=round(float(np.median(drawdowns)), 2),
        drawdown_p95=round(float(np.percentile(drawdowns, 95)), 2),
        probability_of_profit=float(np.mean(profits > 0)),
    )


def strategy_display_name(strategy: BacktestStrategy) -> str:
    return STRATEGY_NAMES[BacktestStrategy(strategy)]
