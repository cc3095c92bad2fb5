"""
ARBITRAGE.PY - Smart-score arbitrage factor

Unlike the other factors this one starts at 0: no opportunity, no score.

    profit < 1%  -> 60
    profit < 2%  -> 75
    otherwise    -> 90
    profit > 3%  -> +10 (capped at 100)
"""

from typing import Optional

from match_schema import ArbitrageOpportunity
from signals.factor import POSITIVE, FactorScore


def calculate_arbitrage_score(opportunity: Optional[ArbitrageOpportunity]) -> FactorScore:
    if opportunity is None or not opportunity.has_opportunity:
        return FactorScore(score=0.0)

    profit = opportunity.potential_profit
    if profit < 1:
        result = FactorScore(score=60.0)
    elif profit < 2:
        result = FactorScore(score=75.0)
    else:
        result = FactorScore(score=90.0)

    books = " / ".join(opportunity.sportsbooks)
    result.note("arbitrage", POSITIVE, 8, f"Arbitrage opportunity: {profit:.2f}% guaranteed profit across {books}")
    if profit > 3:
        result.add(10, "arbitrage-premium", 9, "Premium arbitrage (3%+ profit)")
    return result.clamped()
