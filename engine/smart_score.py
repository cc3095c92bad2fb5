"""
SMART_SCORE.PY - Six-factor composite score
===========================================

    overall = 0.20 * momentum
            + 0.20 * value
            + 0.20 * odds_movement
            + 0.15 * weather
            + 0.15 * injuries
            + 0.10 * arbitrage

Each factor is already bounded to [0, 100], so the weighted sum is too. The
recommendation tier comes from overall (>=75 strong, >=60 moderate, <=35
avoid, else neutral) and the reasoning names the factor furthest from
neutral.

Usage:
    calculator = SmartScoreCalculator()
    scored = calculator.calculate(predicted_match)            # sync
    scored = await calculator.calculate_async(predicted_match) # injury reports
"""

from typing import Callable, Dict, Optional
import logging

from core.invariants import (
    SMART_SCORE_AVOID,
    SMART_SCORE_BOUNDS,
    SMART_SCORE_MODERATE,
    SMART_SCORE_STRONG,
    SMART_SCORE_WEIGHTS,
    clamp_to,
)
from core.structured_logging import EventLog, NullEventLog, match_context
from engine.annotation import annotate_match
from engine.arbitrage import detect_match_arbitrage
from match_schema import (
    ArbitrageOpportunity,
    Match,
    RecommendationStrength,
    SmartScore,
    SmartScoreComponents,
    SmartScoreRecommendation,
)
from signals.arbitrage import calculate_arbitrage_score
from signals.factor import FactorScore
from signals.injuries import calculate_injury_score, score_match_injuries
from signals.momentum import calculate_momentum_score
from signals.odds_movement import calculate_odds_movement_score
from signals.value import calculate_value_score
from signals.weather import calculate_weather_score

logger = logging.getLogger(__name__)

FACTOR_LABELS: Dict[str, str] = {
    "momentum": "Momentum",
    "value": "Betting value",
    "odds_movement": "Odds movement",
    "weather": "Weather",
    "injuries": "Injury situation",
    "arbitrage": "Arbitrage",
}

_CONFIDENCE_LABELS = {
    RecommendationStrength.STRONG: "high",
    RecommendationStrength.MODERATE: "medium",
    RecommendationStrength.NEUTRAL: "low",
    RecommendationStrength.AVOID: "low",
}


def weighted_overall(scores: Dict[str, float]) -> float:
    total = sum(scores[name] * weight for name, weight in SMART_SCORE_WEIGHTS.items())
    return float(round(clamp_to(total, SMART_SCORE_BOUNDS)))


def recommendation_strength(overall: float) -> RecommendationStrength:
    if overall >= SMART_SCORE_STRONG:
        return RecommendationStrength.STRONG
    if overall >= SMART_SCORE_MODERATE:
        return RecommendationStrength.MODERATE
    if overall <= SMART_SCORE_AVOID:
        return RecommendationStrength.AVOID
    return RecommendationStrength.NEUTRAL


def dominant_factor(scores: Dict[str, float]) -> str:
    """Factor with the largest distance from neutral (50). Ties keep weight order."""
    return max(SMART_SCORE_WEIGHTS, key=lambda name: abs(scores[name] - 50))


def build_recommendation(match: Match, overall: float, scores: Dict[str, float]) -> SmartScoreRecommendation:
    strength = recommendation_strength(overall)
    driver = dominant_factor(scores)
    direction = "favorable" if scores[driver] >= 50 else "unfavorable"
    label = FACTOR_LABELS[driver]

    bet_on = None
    if match.prediction is not None and strength is not RecommendationStrength.AVOID:
        bet_on = match.prediction.recommended

    if strength is RecommendationStrength.AVOID:
        reasoning = f"Avoid: {label.lower()} is the weakest signal ({scores[driver]:.0f})"
    else:
        reasoning = f"{strength.value.title()} play: {label.lower()} is the strongest driver, {direction} at {scores[driver]:.0f}"

    return SmartScoreRecommendation(
        bet_on=bet_on,
        strength=strength,
        confidence=_CONFIDENCE_LABELS[strength],
        reasoning=reasoning,
    )


class SmartScoreCalculator:
    """
    Combines the six factor modules for one match.

    arbitrage_detector is any callable Match -> ArbitrageOpportunity.
    injury_service, when given, must expose
    `async get_injury_score(match) -> FactorScore` and is used only by
    calculate_async.
    """

    def __init__(
        self,
        arbitrage_detector: Callable[[Match], ArbitrageOpportunity] = detect_match_arbitrage,
        injury_service=None,
        event_log: Optional[EventLog] = None,
    ):
        self.arbitrage_detector = arbitrage_detector
        self.injury_service = injury_service
        self.events = event_log if event_log is not None else NullEventLog()

    def _injuries(self, match: Match) -> FactorScore:
        if match.injuries:
            return score_match_injuries(match, match.injuries)
        return calculate_injury_score(match)

    def score(self, match: Match, injuries: Optional[FactorScore] = None) -> SmartScore:
        """Compute the SmartScore without annotating the match."""
        opportunity = self.arbitrage_detector(match)
        factors: Dict[str, FactorScore] = {
            "momentum": calculate_momentum_score(match),
            "value": calculate_value_score(match),
            "odds_movement": calculate_odds_movement_score(match),
            "weather": calculate_weather_score(match),
            "injuries": injuries if injuries is not None else self._injuries(match),
            "arbitrage": calculate_arbitrage_score(opportunity),
        }
        scores = {name: float(result.score) for name, result in factors.items()}
        overall = weighted_overall(scores)

        smart_score = SmartScore(
            overall=overall,
            components=SmartScoreComponents(**scores),
            factors={name: result.descriptions() for name, result in factors.items()},
            recommendation=build_recommendation(match, overall, scores),
            has_arbitrage_opportunity=opportunity.has_opportunity,
        )
        self.events.log("smart score computed", overall=overall, **scores)
        logger.debug("Smart score for %s: %.0f (%s)", match.id, overall, smart_score.recommendation.strength.value)
        return smart_score

    def calculate(self, match: Match) -> Match:
        with match_context(match.id):
            return annotate_match(match, smart_score=self.score(match)).match

    async def calculate_async(self, match: Match) -> Match:
        """Same as calculate, but injuries come from the injury service when configured."""
        with match_context(match.id):
            injuries = None
            if self.injury_service is not None:
                injuries = await self.injury_service.get_injury_score(match)
            return annotate_match(match, smart_score=self.score(match, injuries=injuries)).match
