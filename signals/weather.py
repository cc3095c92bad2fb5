"""
WEATHER.PY - Smart-score weather factor
=======================================

Dispatches on the league's WeatherModel:

    INDOOR      95, no weather exposure
    dome venue  95 (report flagged is_dome, or a known dome home team)
    report      sport-specific deductions from a base of 80
    no report   seeded simulation per match id, base 80

Higher is better (less weather noise in the outcome). Floored at 0.
"""

from typing import Optional
import logging

from core.seeded_random import SeededRandom
from core.sports import WeatherModel, get_league_profile
from match_schema import Match, WeatherReport
from signals.factor import NEGATIVE, NEUTRAL, POSITIVE, FactorScore

logger = logging.getLogger(__name__)

INDOOR_SCORE = 95.0
WEATHER_BASE = 80.0

MLB_DOME_TEAMS = ("Rays", "Marlins", "Blue Jays", "Diamondbacks", "Rangers", "Astros")
NFL_DOME_TEAMS = (
    "Saints", "Vikings", "Falcons", "Lions", "Colts", "Raiders",
    "Cardinals", "Cowboys", "Texans", "Rams", "Chargers",
)


def _indoor(description: str) -> FactorScore:
    result = FactorScore(score=INDOOR_SCORE)
    result.note("indoor", POSITIVE, 2, description)
    return result


def _plays_in_dome(match: Match, model: WeatherModel, report: Optional[WeatherReport]) -> bool:
    if report is not None and report.is_dome:
        return True
    name = match.home_team.name
    if model is WeatherModel.BASEBALL:
        return any(team in name for team in MLB_DOME_TEAMS)
    if model is WeatherModel.FOOTBALL:
        return any(team in name for team in NFL_DOME_TEAMS)
    return False


def _has(report: WeatherReport, *words: str) -> bool:
    conditions = report.conditions.lower()
    return any(word in conditions for word in words)


# =============================================================================
# REAL REPORTS
# =============================================================================


def _baseball_report(result: FactorScore, w: WeatherReport) -> None:
    wind = w.wind_mph or 0
    temp = w.temperature_f
    if wind >= 20:
        result.add(-25, "high-wind-mlb", 9, f"High winds ({wind:.0f} mph) significantly affecting fly balls and pitching")
    elif wind >= 12:
        result.add(-12, "moderate-wind-mlb", 6, f"Moderate winds ({wind:.0f} mph) affecting ball flight")

    if _has(w, "rain", "thunderstorm"):
        result.add(-30, "rain-mlb", 10, "Rain affecting grip, field conditions, potential delays")
    elif _has(w, "drizzle"):
        result.add(-15, "drizzle-mlb", 6, "Light rain affecting pitching grip and ball handling")

    if temp is not None and temp < 40:
        result.add(-15, "cold-mlb", 7, f"Cold conditions ({temp:.0f}°F) affecting bat speed and ball travel")
    elif temp is not None and temp > 90:
        result.add(-10, "hot-mlb", 5, f"Hot conditions ({temp:.0f}°F) affecting player stamina")

    if w.humidity is not None and w.humidity > 80:
        result.add(-5, "humidity-mlb", 3, "High humidity reducing ball carry distance")

    if not result.factors:
        result.note("ideal-mlb", POSITIVE, 3, f"Ideal baseball weather: {w.conditions or 'clear'}")


def _football_report(result: FactorScore, w: WeatherReport) -> None:
    wind = w.wind_mph or 0
    temp = w.temperature_f
    if _has(w, "snow"):
        result.add(-30, "snow-nfl", 10, "Snow affecting footing, passing game, and field conditions")
    elif _has(w, "rain"):
        result.add(-20, "rain-nfl", 8, "Rain affecting ball handling, footing, and passing accuracy")

    if wind >= 25:
        result.add(-25, "high-wind-nfl", 9, f"Strong winds ({wind:.0f} mph) severely impacting passing and kicking games")
    elif wind >= 15:
        result.add(-15, "moderate-wind-nfl", 6, f"Moderate winds ({wind:.0f} mph) affecting deep passes and field goals")

    if temp is not None and temp < 32:
        result.add(-15, "freezing-nfl", 7, f"Freezing conditions ({temp:.0f}°F) affecting grip and player comfort")
    elif temp is not None and temp < 40:
        result.add(-8, "cold-nfl", 4, f"Cold weather ({temp:.0f}°F) impacting ball handling")

    if not result.factors:
        result.note("good-weather-nfl", POSITIVE, 3, f"Good football weather: {w.conditions or 'clear'}")


def _soccer_report(result: FactorScore, w: WeatherReport) -> None:
    wind = w.wind_mph or 0
    temp = w.temperature_f
    if _has(w, "rain"):
        result.add(-20, "rain-soccer", 7, "Rain affecting field conditions and ball control")
    elif _has(w, "snow"):
        result.add(-25, "snow-soccer", 8, "Snow affecting visibility and field conditions")

    if wind >= 30:
        result.add(-15, "high-wind-soccer", 6, f"Strong winds ({wind:.0f} mph) affecting crosses and long balls")
    elif wind >= 20:
        result.add(-8, "moderate-wind-soccer", 4, "Moderate winds affecting aerial play")

    if temp is not None and temp < 35:
        result.add(-10, "cold-soccer", 5, f"Cold conditions ({temp:.0f}°F) affecting player performance")
    elif temp is not None and temp > 85:
        result.add(-15, "hot-soccer", 6, f"Hot conditions ({temp:.0f}°F) affecting stamina and performance")

    if not result.factors:
        result.note("good-conditions-soccer", POSITIVE, 3, f"Good playing conditions: {w.conditions or 'clear'}")


def _generic_report(result: FactorScore, w: WeatherReport) -> None:
    if _has(w, "rain"):
        result.add(-20, "rain", 7, "Rain affecting playing conditions")
    elif _has(w, "snow"):
        result.add(-25, "snow", 8, "Snow affecting playing conditions")
    if (w.wind_mph or 0) >= 20:
        result.add(-15, "high-wind", 6, f"High winds ({w.wind_mph:.0f} mph)")
    if not result.factors:
        result.note("favorable-conditions", POSITIVE, 2, "Favorable playing conditions")


_REPORT_PATHS = {
    WeatherModel.BASEBALL: _baseball_report,
    WeatherModel.FOOTBALL: _football_report,
    WeatherModel.SOCCER: _soccer_report,
    WeatherModel.GENERIC: _generic_report,
}


# =============================================================================
# SIMULATION (no report supplied)
# =============================================================================


def _simulate(result: FactorScore, model: WeatherModel, pr: float) -> None:
    if model is WeatherModel.BASEBALL:
        if pr < 0.15:
            result.add(-25, "rain-mlb", 9, "Rain affecting pitching grip and ball flight")
        elif pr < 0.25:
            result.add(-20, "wind-mlb", 8, "High winds affecting fly balls and pitching")
        elif pr < 0.45:
            result.add(-10, "heat-mlb", 5, "Heat/humidity affecting player stamina")
        else:
            result.note("favorable-mlb", POSITIVE, 3, "Favorable baseball playing conditions")
    elif model is WeatherModel.FOOTBALL:
        if pr < 0.15:
            result.add(-30, "snow-nfl", 10, "Snow affecting field conditions and passing game")
        elif pr < 0.30:
            result.add(-20, "rain-nfl", 8, "Rain affecting ball handling and footing")
        elif pr < 0.45:
            result.add(-15, "wind-nfl", 7, "High winds affecting passing and kicking game")
        else:
            result.note("favorable-nfl", POSITIVE, 3, "Favorable football playing conditions")
    elif model is WeatherModel.SOCCER:
        if pr < 0.25:
            result.add(-15, "rain-soccer", 7, "Rainy conditions affecting field play")
        elif pr < 0.35:
            result.add(-20, "heavy-rain-soccer", 8, "Heavy rain affecting passing and visibility")
        else:
            result.note("favorable-conditions-soccer", POSITIVE, 3, "Favorable playing conditions")
    else:
        if pr < 0.3:
            result.add(-10, "unfavorable-conditions", 5, "Potentially unfavorable weather conditions")
        else:
            result.note("standard-conditions", NEUTRAL, 2, "Standard playing conditions")


def calculate_weather_score(match: Match, report: Optional[WeatherReport] = None) -> FactorScore:
    """Weather sub-score for match. report overrides match.weather when given."""
    model = get_league_profile(match.league).weather_model
    if model is WeatherModel.INDOOR:
        return _indoor("Indoor climate-controlled environment")
    report = report or match.weather
    if _plays_in_dome(match, model, report):
        return _indoor("Dome stadium with controlled climate")

    result = FactorScore(score=WEATHER_BASE)
    if report is not None:
        _REPORT_PATHS[model](result, report)
    else:
        pr = SeededRandom.for_match(match.id, salt="weather").random()
        _simulate(result, model, pr)

    if any(f.impact == NEGATIVE for f in result.factors):
        logger.debug("Weather deductions for %s: %s", match.id, result.descriptions())
    return result.clamped()
