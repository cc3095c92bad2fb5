"""
ARBITRAGE.PY - Cross-book arbitrage detection

For each outcome take the best (highest) decimal price across books, then

    arbitrage % = sum(1 / best price) * 100         (2-way or 3-way)
    opportunity iff arbitrage % < 100
    profit %    = (100 / arbitrage % - 1) * 100

Stake percentages are proportional to 1/price so every outcome returns the
same amount. Fewer than two distinct books is "insufficient data", not an
error.

Usage:
    from engine.arbitrage import detect_arbitrage, find_opportunities

    opp = detect_arbitrage(match.odds.live_odds, match_id=match.id)
    if opp.has_opportunity:
        print(opp.potential_profit, opp.stake_percentages)
"""

from typing import Dict, Iterable, List, Optional, Sequence
import logging

from match_schema import ArbitrageOpportunity, BestPrice, LiveOdds, Match, Side
from signals.market import quote_price

logger = logging.getLogger(__name__)

PREMIUM_PROFIT_PCT = 1.5


def _best_price(quotes: Sequence[LiveOdds], side: Side) -> Optional[BestPrice]:
    best = None
    for quote in quotes:
        price = quote_price(quote, side)
        if price is None:
            continue
        if best is None or price > best.odds:
            best = BestPrice(odds=price, sportsbook=quote.sportsbook.name)
    return best


def calculate_stake_percentages(best: Dict[Side, BestPrice]) -> Dict[str, float]:
    total = sum(1 / price.odds for price in best.values())
    return {side.value: round((1 / price.odds) / total * 100, 2) for side, price in best.items()}


def detect_arbitrage(live_odds: Sequence[LiveOdds], match_id: Optional[str] = None) -> ArbitrageOpportunity:
    quotes = [q for q in live_odds if q.sportsbook.is_available]
    if len({q.sportsbook.id for q in quotes}) < 2:
        return ArbitrageOpportunity(match_id=match_id, arbitrage_percentage=100.0, insufficient_data=True)

    best: Dict[Side, BestPrice] = {
        Side.HOME: _best_price(quotes, Side.HOME),
        Side.AWAY: _best_price(quotes, Side.AWAY),
    }
    draw = _best_price(quotes, Side.DRAW)
    if draw is not None:
        best[Side.DRAW] = draw

    arbitrage_pct = sum(1 / price.odds for price in best.values()) * 100
    profit = max(0.0, (100 / arbitrage_pct - 1) * 100)
    has_opportunity = arbitrage_pct < 100

    books = []
    for price in best.values():
        if price.sportsbook not in books:
            books.append(price.sportsbook)

    if has_opportunity:
        logger.info("Arbitrage on %s: %.2f%% book, %.2f%% profit", match_id, arbitrage_pct, profit)

    return ArbitrageOpportunity(
        match_id=match_id,
        best_home=best[Side.HOME],
        best_away=best[Side.AWAY],
        best_draw=draw,
        arbitrage_percentage=round(arbitrage_pct, 2),
        potential_profit=round(profit, 2),
        sportsbooks=tuple(books),
        stake_percentages=calculate_stake_percentages(best),
        has_opportunity=has_opportunity,
        is_premium=has_opportunity and profit > PREMIUM_PROFIT_PCT,
    )


def detect_match_arbitrage(match: Match) -> ArbitrageOpportunity:
    return detect_arbitrage(match.odds.live_odds, match_id=match.id)


def find_opportunities(matches: Iterable[Match], max_percentage: float = 100.0) -> List[ArbitrageOpportunity]:
    """Opportunities below max_percentage, most profitable first."""
    found = []
    for match in matches:
        opp = detect_match_arbitrage(match)
        if opp.insufficient_data or opp.arbitrage_percentage >= max_percentage:
            continue
        found.append(opp)
    return sorted(found, key=lambda o: (o.potential_profit, -o.arbitrage_percentage), reverse=True)
