"""
SIGNALS MODULE - Smart-score factor calculations
=================================================

Each factor module takes a match (plus the prediction being scored) and
returns a FactorScore: a 0-100 score and the explanation entries behind it.

Modules:
- momentum: confidence tiers and both teams' recent form
- value: edge over vig-free market probability, odds shopping
- odds_movement: opening vs latest quote, reverse line movement
- weather: per-league weather model (indoor, dome, report, simulated)
- injuries: losing-streak heuristic and position-weighted reports
- arbitrage: score for a detected cross-book arbitrage
- market: line-movement primitives shared by the factors and algorithms
- public_fade: seeded public-betting skew
"""

from .arbitrage import calculate_arbitrage_score
from .factor import Factor, FactorScore
from .injuries import calculate_injury_score, score_match_injuries, score_team_injuries
from .market import (
    LineMovement,
    closing_line_value,
    detect_reverse_line_movement,
    line_movement,
    odds_regression_slope,
    shopping_spread,
)
from .momentum import calculate_momentum_score
from .odds_movement import calculate_odds_movement_score
from .public_fade import PublicFadeSignal, calculate_public_fade, simulate_public_on_favorite
from .value import calculate_value_score, normalized_probabilities
from .weather import calculate_weather_score

__all__ = [
    "Factor",
    "FactorScore",
    # Factors
    "calculate_momentum_score",
    "calculate_value_score",
    "calculate_odds_movement_score",
    "calculate_weather_score",
    "calculate_injury_score",
    "calculate_arbitrage_score",
    "score_match_injuries",
    "score_team_injuries",
    "normalized_probabilities",
    # Market
    "LineMovement",
    "line_movement",
    "detect_reverse_line_movement",
    "closing_line_value",
    "odds_regression_slope",
    "shopping_spread",
    # Public fade
    "PublicFadeSignal",
    "calculate_public_fade",
    "simulate_public_on_favorite",
]
