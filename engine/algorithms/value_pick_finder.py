"""
VALUE_PICK_FINDER.PY - Market-driven adjustments to the base pick
=================================================================

Keeps the base engine's side, starts from the base support for that side
(an away lean of 36 starts at 64) and moves it by what the market says:

    value factor > 60        + (v - 60) * 0.5
    value factor < 40        - (40 - v) * 0.5
    closing-line value       + CLV * 1.5
    price trend              + slope(odds per hour) * -15
    RLM toward the pick      + 6
    market efficiency        + league constant
    arbitrage available      + 8
    public fade              + 4 (seeded public share > 70% on the favorite)

Clamped to [40, 85].
"""

from typing import List

from core.algorithm_ids import AlgorithmId
from core.invariants import VALUE_PICK_FINDER_BOUNDS, clamp_to
from core.sports import get_league_profile
from engine.algorithms.base import AlgorithmVariant, VariantDraft, pick_support
from engine.arbitrage import detect_match_arbitrage
from match_schema import Match, Prediction
from signals.market import closing_line_value, detect_reverse_line_movement, odds_regression_slope
from signals.public_fade import calculate_public_fade, simulate_public_on_favorite
from signals.value import calculate_value_score

VALUE_HIGH = 60.0
VALUE_LOW = 40.0
VALUE_WEIGHT = 0.5
CLV_WEIGHT = 1.5
SLOPE_WEIGHT = -15.0
RLM_BONUS = 6.0
ARBITRAGE_BONUS = 8.0


class ValuePickFinder(AlgorithmVariant):
    algorithm_id = AlgorithmId.VALUE_PICK_FINDER
    bounds = VALUE_PICK_FINDER_BOUNDS

    def __init__(self, engine, calibration=None, event_log=None, arbitrage_detector=detect_match_arbitrage):
        super().__init__(engine, calibration=calibration, event_log=event_log)
        self.arbitrage_detector = arbitrage_detector

    def adjust(self, match: Match, base: Prediction) -> VariantDraft:
        pick = base.recommended
        confidence = pick_support(base)
        reasoning: List[str] = []

        value = calculate_value_score(match, base).score
        if value > VALUE_HIGH:
            confidence += (value - VALUE_HIGH) * VALUE_WEIGHT
            reasoning.append(f"Strong betting value ({value:.0f})")
        elif value < VALUE_LOW:
            confidence -= (VALUE_LOW - value) * VALUE_WEIGHT
            reasoning.append(f"Poor betting value ({value:.0f})")

        live_odds = match.odds.live_odds
        clv = closing_line_value(live_odds, pick)
        if clv:
            confidence += clv * CLV_WEIGHT
            reasoning.append(f"Closing-line value {clv:+.2f} pts")

        slope = odds_regression_slope(live_odds, pick)
        if slope:
            confidence += slope * SLOPE_WEIGHT
            reasoning.append(f"Price trend {slope:+.3f}/hr")

        if detect_reverse_line_movement(live_odds) == pick:
            confidence += RLM_BONUS
            reasoning.append("Reverse line movement toward the pick")

        efficiency = get_league_profile(match.league).efficiency_adjustment
        if efficiency:
            confidence += efficiency
            reasoning.append(f"{match.league.value} market efficiency {efficiency:+.0f}")

        if self.arbitrage_detector(match).has_opportunity:
            confidence += ARBITRAGE_BONUS
            reasoning.append("Arbitrage opportunity across books")

        fade = calculate_public_fade(simulate_public_on_favorite(match.id), match.odds, pick)
        if fade.is_fade_opportunity:
            confidence += fade.boost
            reasoning.append(fade.reason)

        return VariantDraft(
            recommended=pick,
            raw_confidence=clamp_to(confidence, VALUE_PICK_FINDER_BOUNDS),
            reasoning=reasoning,
        )
