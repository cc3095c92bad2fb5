"""
MARKET SIGNALS MODULE - Line-movement signals from the live-odds history

SIGNALS:
1. Line movement - opening vs latest quote per side
2. Reverse Line Movement (RLM) - home and away prices moving in opposite directions
3. Closing-line value (CLV) - change in implied probability of a side
4. Regression slope - least-squares trend of a side's price over time (numpy)
5. Shopping spread - best minus worst price across books

Every function degrades to a neutral value (None or 0.0) when there are
fewer than two quotes; nothing here raises on missing data.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

import numpy as np

from match_schema import LiveOdds, Side

logger = logging.getLogger(__name__)


def sorted_quotes(live_odds: Sequence[LiveOdds]) -> List[LiveOdds]:
    """Quotes ordered oldest first."""
    return sorted(live_odds, key=lambda q: q.updated_at)


def quote_price(quote: LiveOdds, side: Side) -> Optional[float]:
    if side == Side.HOME:
        return quote.home_win
    if side == Side.AWAY:
        return quote.away_win
    return quote.draw


# =============================================================================
# LINE MOVEMENT / RLM
# =============================================================================


@dataclass(frozen=True)
class LineMovement:
    opening: LiveOdds
    latest: LiveOdds

    @property
    def home_delta(self) -> float:
        return self.latest.home_win - self.opening.home_win

    @property
    def away_delta(self) -> float:
        return self.latest.away_win - self.opening.away_win

    def delta_for(self, side: Side) -> Optional[float]:
        start, end = quote_price(self.opening, side), quote_price(self.latest, side)
        if start is None or end is None:
            return None
        return end - start

    @property
    def reverse_line_side(self) -> Optional[Side]:
        """
        Side favored by reverse line movement, if any.

        Home price lengthening while away shortens reads as sharp money on
        home against the public, and vice versa.
        """
        if self.home_delta > 0 and self.away_delta < 0:
            return Side.HOME
        if self.home_delta < 0 and self.away_delta > 0:
            return Side.AWAY
        return None

    def to_dict(self):
        return {
            "home_delta": round(self.home_delta, 3),
            "away_delta": round(self.away_delta, 3),
            "reverse_line_side": self.reverse_line_side.value if self.reverse_line_side else None,
        }


def line_movement(live_odds: Sequence[LiveOdds]) -> Optional[LineMovement]:
    if len(live_odds) < 2:
        return None
    quotes = sorted_quotes(live_odds)
    return LineMovement(opening=quotes[0], latest=quotes[-1])


def detect_reverse_line_movement(live_odds: Sequence[LiveOdds]) -> Optional[Side]:
    movement = line_movement(live_odds)
    return movement.reverse_line_side if movement else None


# =============================================================================
# CLOSING-LINE VALUE / TREND
# =============================================================================


def closing_line_value(live_odds: Sequence[LiveOdds], side: Side) -> float:
    """
    Change in implied probability (percentage points) of side between the
    first and last quote. Positive when the market moved toward the side.
    """
    movement = line_movement(live_odds)
    if movement is None:
        return 0.0
    start, end = quote_price(movement.opening, side), quote_price(movement.latest, side)
    if not start or not end:
        return 0.0
    return (1 / end - 1 / start) * 100


def odds_regression_slope(live_odds: Sequence[LiveOdds], side: Side) -> float:
    """Least-squares slope of side's decimal price in odds per hour."""
    quotes = [q for q in sorted_quotes(live_odds) if quote_price(q, side) is not None]
    if len(quotes) < 2:
        return 0.0

    origin = quotes[0].updated_at
    hours = np.array([(q.updated_at - origin).total_seconds() / 3600 for q in quotes])
    prices = np.array([quote_price(q, side) for q in quotes])
    if np.ptp(hours) == 0:
        return 0.0

    slope, _ = np.polyfit(hours, prices, 1)
    return float(slope)


def shopping_spread(live_odds: Sequence[LiveOdds], side: Side) -> float:
    """Best minus worst available price for side across quotes."""
    prices = [p for p in (quote_price(q, side) for q in live_odds) if p is not None]
    if len(prices) < 2:
        return 0.0
    return max(prices) - min(prices)
