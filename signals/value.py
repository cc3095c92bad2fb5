"""
VALUE.PY - Smart-score value factor

Compares the prediction's probability with the vig-free market probability
of the picked side, rewards undervalued underdogs and odds-shopping spread.
Without a prediction or both prices the score stays at 50.

    edge = (confidence / 100 - normalized implied prob) * 100

    general   edge > 7 / 4 / 2       -> +25 / +15 / +5
    MLB       edge > 6 / 3 / 1.5     -> +25 / +15 / +5
"""

from typing import Dict, Optional, Tuple

from core.seeded_random import SeededRandom
from core.sports import League
from match_schema import Match, Odds, Prediction, Side
from signals.factor import FactorScore
from signals.market import shopping_spread

# (edge threshold, points, weight, label)
EDGE_TIERS: Tuple[Tuple[float, int, int, str], ...] = (
    (7.0, 25, 9, "Significant edge on {side} team (7%+ advantage)"),
    (4.0, 15, 7, "Moderate edge on {side} team (4-7% advantage)"),
    (2.0, 5, 4, "Slight edge on {side} team (2-4% advantage)"),
)
MLB_EDGE_TIERS: Tuple[Tuple[float, int, int, str], ...] = (
    (6.0, 25, 9, "Significant edge on {side} team (6%+ advantage)"),
    (3.0, 15, 7, "Moderate edge on {side} team (3-6% advantage)"),
    (1.5, 5, 5, "Slight edge on {side} team (1.5-3% advantage)"),
)
SHOPPING_TIERS = ((0.25, 15, 8), (0.15, 8, 5))
MLB_SHOPPING_TIERS = ((0.20, 12, 7), (0.10, 6, 4))


def normalized_probabilities(odds: Odds) -> Dict[Side, float]:
    """Implied probabilities with the bookmaker margin removed."""
    if not odds.has_prices:
        return {}
    implied = {Side.HOME: 1 / odds.home_win, Side.AWAY: 1 / odds.away_win}
    if odds.draw is not None:
        implied[Side.DRAW] = 1 / odds.draw
    total = sum(implied.values())
    return {side: p / total for side, p in implied.items()}


def calculate_edge(odds: Odds, prediction: Prediction) -> Optional[float]:
    """Edge of the pick over the market, in percentage points."""
    probs = normalized_probabilities(odds)
    if prediction.recommended not in probs:
        return None
    return (prediction.confidence / 100 - probs[prediction.recommended]) * 100


def _apply_edge(result: FactorScore, edge: Optional[float], side: Side, tiers, prefix: str) -> None:
    if edge is None:
        return
    for threshold, points, weight, label in tiers:
        if edge > threshold:
            result.add(points, f"{prefix}value-{side.value}-{points}", weight, label.format(side=side.value))
            return


def _apply_shopping(result: FactorScore, match: Match, side: Side, tiers, prefix: str) -> None:
    spread = shopping_spread(match.odds.live_odds, side)
    for threshold, points, weight in tiers:
        if spread > threshold:
            result.add(points, f"{prefix}odds-shopping-{points}", weight,
                       f"Odds shopping opportunity available ({threshold * 100:.0f}+ cent difference)")
            return


def _mlb_value(match: Match, prediction: Prediction) -> FactorScore:
    result = FactorScore()
    side = prediction.recommended
    _apply_edge(result, calculate_edge(match.odds, prediction), side, MLB_EDGE_TIERS, "mlb-")

    if side == Side.AWAY and match.odds.away_win > 2.2:
        result.add(15, "mlb-away-underdog-value", 8, "Road underdog with significant positive expected value")
    elif side == Side.HOME and match.odds.home_win > 2.0:
        result.add(10, "mlb-home-underdog-value", 7, "Home underdog with positive expected value")

    rng = SeededRandom.for_match(match.id, salt="mlb-value-weather")
    if rng.random() > 0.8:
        if rng.random() > 0.5:
            result.add(-8, "mlb-weather-impact-high", 6, "Weather conditions could significantly impact game (wind/rain)")
        else:
            result.add(-4, "mlb-weather-impact-low", 3, "Minor weather concerns present")

    _apply_shopping(result, match, side, MLB_SHOPPING_TIERS, "mlb-")
    return result.clamped()


def calculate_value_score(match: Match, prediction: Optional[Prediction] = None) -> FactorScore:
    prediction = prediction or match.prediction
    if prediction is None or not match.odds.has_prices:
        return FactorScore()
    if match.league is League.MLB:
        return _mlb_value(match, prediction)

    result = FactorScore()
    side = prediction.recommended
    _apply_edge(result, calculate_edge(match.odds, prediction), side, EDGE_TIERS, "")

    probs = normalized_probabilities(match.odds)
    p = prediction.confidence / 100
    if side == Side.HOME and probs[Side.HOME] < 0.4 and p > 0.45:
        result.add(10, "undervalued-home-underdog", 8, "Home underdog significantly undervalued")
    elif side == Side.AWAY and probs[Side.AWAY] < 0.35 and p > 0.4:
        result.add(12, "undervalued-road-underdog", 9, "Road underdog significantly undervalued")

    _apply_shopping(result, match, side, SHOPPING_TIERS, "")
    return result.clamped()
