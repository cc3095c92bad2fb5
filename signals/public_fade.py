"""
PUBLIC_FADE.PY - Public betting fade signal
============================================

Public ticket share is not an input to the engine, so it is simulated per
match from a seeded generator (same match id, same share). When the public
is heavily on the favorite and the pick is the underdog, Value Pick Finder
treats that as a contrarian edge.

Usage:
    from signals.public_fade import calculate_public_fade, simulate_public_on_favorite

    public_pct = simulate_public_on_favorite(match.id)
    signal = calculate_public_fade(public_pct, match.odds, pick)
    confidence += signal.boost
"""

from dataclasses import dataclass
from typing import Optional

from core.seeded_random import SeededRandom
from match_schema import Odds, Side

FADE_THRESHOLD = 70.0
STRONG_FADE_THRESHOLD = 75.0
EXTREME_FADE_THRESHOLD = 80.0
FADE_BOOST = 4.0


@dataclass
class PublicFadeSignal:
    """
    Attributes:
        public_pct: Simulated public share on the favorite (0-100)
        favorite: Side the market prices shorter, if any
        direction: 'FADE' or 'NEUTRAL'
        boost: Confidence points for the pick
        is_fade_opportunity: Public heavy on the favorite and pick is the dog
        reason: Human-readable description
    """
    public_pct: float
    favorite: Optional[Side] = None
    direction: str = "NEUTRAL"
    boost: float = 0.0
    is_fade_opportunity: bool = False
    is_strong_fade: bool = False
    is_extreme_fade: bool = False
    reason: str = ""

    def to_dict(self):
        return {
            "public_pct": self.public_pct,
            "favorite": self.favorite.value if self.favorite else None,
            "direction": self.direction,
            "boost": self.boost,
            "is_fade_opportunity": self.is_fade_opportunity,
            "is_strong_fade": self.is_strong_fade,
            "is_extreme_fade": self.is_extreme_fade,
            "reason": self.reason,
        }


def simulate_public_on_favorite(match_id: str) -> float:
    """Seeded public share on the favorite, 60-90%."""
    rng = SeededRandom.for_match(match_id, salt="public")
    return round(rng.uniform(60, 90), 1)


def market_favorite(odds: Odds) -> Optional[Side]:
    if not odds.has_prices or odds.home_win == odds.away_win:
        return None
    return Side.HOME if odds.home_win < odds.away_win else Side.AWAY


def calculate_public_fade(public_pct: float, odds: Odds, pick: Side) -> PublicFadeSignal:
    public_pct = max(0.0, min(100.0, float(public_pct)))
    favorite = market_favorite(odds)
    signal = PublicFadeSignal(public_pct=public_pct, favorite=favorite)

    if favorite is None or pick == Side.DRAW or pick == favorite:
        return signal
    if public_pct <= FADE_THRESHOLD:
        return signal

    signal.direction = "FADE"
    signal.boost = FADE_BOOST
    signal.is_fade_opportunity = True
    signal.is_strong_fade = public_pct >= STRONG_FADE_THRESHOLD
    signal.is_extreme_fade = public_pct >= EXTREME_FADE_THRESHOLD
    if signal.is_extreme_fade:
        signal.reason = f"Extreme public at {public_pct:.0f}% on the favorite (fade)"
    elif signal.is_strong_fade:
        signal.reason = f"Public at {public_pct:.0f}% on the favorite (strong fade)"
    else:
        signal.reason = f"Public at {public_pct:.0f}% on the favorite (moderate fade)"
    return signal
