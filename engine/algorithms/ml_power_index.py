"""
ML_POWER_INDEX.PY - Form and momentum reweighting of the base prediction
========================================================================

Heuristic "power index" built on top of the base engine. Everything is
expressed as support for the home side, then resolved to a pick:

    home_value = base (home-oriented)
               + (recent3_diff * 1.5 + full_diff) * 0.6       form
               + net rating diff * 0.1 + matchup diff * 0.05   ratings
               + weighted last-5 diff * 0.8                   time series
               + league constant

    Bayesian pull: > 70 -> 70 + (x - 70) * 0.7
                   < 45 -> 45 + (x - 45) * 0.7

Side is home iff home_value >= 50; confidence clamps to [40, 85].
"""

from typing import List, Optional, Sequence, Tuple

from core.algorithm_ids import AlgorithmId
from core.invariants import ML_POWER_INDEX_BOUNDS
from core.sports import get_league_profile
from engine.algorithms.base import AlgorithmVariant, VariantDraft, home_oriented, resolve_side
from engine.team_strength import calculate_team_strength, form_win_rate
from match_schema import Match, Prediction, Team

FORM_RECENT_WEIGHT = 1.5
FORM_WEIGHT = 0.6
NET_RATING_WEIGHT = 0.1
MATCHUP_WEIGHT = 0.05
TIME_SERIES_WEIGHT = 0.8
TIME_SERIES_WEIGHTS = (5, 4, 3, 2, 1)

PULL_HIGH = 70.0
PULL_LOW = 45.0
PULL_FACTOR = 0.7


def team_ratings(team: Team) -> Tuple[float, float]:
    """(offense, defense) from supplied stats, else from the record-derived strength."""
    strength = calculate_team_strength(team)
    offense = team.stats.get("offensive_rating", strength.offense)
    defense = team.stats.get("defensive_rating", strength.defense)
    return float(offense), float(defense)


def time_series_momentum(form: Sequence[str]) -> float:
    """Weighted sum over the last five results, W = +1, L = -1, D = 0."""
    total = 0.0
    for weight, result in zip(TIME_SERIES_WEIGHTS, form):
        if result == "W":
            total += weight
        elif result == "L":
            total -= weight
    return total


def form_adjustment(home: Team, away: Team) -> Optional[float]:
    home_full, away_full = form_win_rate(home.recent_form), form_win_rate(away.recent_form)
    if home_full is None or away_full is None:
        return None
    recent_diff = (form_win_rate(home.recent_form, 3) - form_win_rate(away.recent_form, 3)) * 10
    full_diff = (home_full - away_full) * 10
    return (recent_diff * FORM_RECENT_WEIGHT + full_diff) * FORM_WEIGHT


def rating_adjustment(home: Team, away: Team) -> float:
    h_off, h_def = team_ratings(home)
    a_off, a_def = team_ratings(away)
    net = ((h_off - h_def) - (a_off - a_def)) * NET_RATING_WEIGHT
    matchup = ((h_off - a_def) - (a_off - h_def)) * MATCHUP_WEIGHT
    return net + matchup


def bayesian_pull(value: float) -> float:
    if value > PULL_HIGH:
        return PULL_HIGH + (value - PULL_HIGH) * PULL_FACTOR
    if value < PULL_LOW:
        return PULL_LOW + (value - PULL_LOW) * PULL_FACTOR
    return value


class MLPowerIndex(AlgorithmVariant):
    algorithm_id = AlgorithmId.ML_POWER_INDEX
    bounds = ML_POWER_INDEX_BOUNDS

    def adjust(self, match: Match, base: Prediction) -> VariantDraft:
        home, away = match.home_team, match.away_team
        value = home_oriented(base)
        reasoning: List[str] = []

        form = form_adjustment(home, away)
        if form is not None and form != 0:
            value += form
            reasoning.append(f"Form differential {form:+.1f}")

        ratings = rating_adjustment(home, away)
        if ratings != 0:
            value += ratings
            reasoning.append(f"Net rating and matchup {ratings:+.1f}")

        if home.recent_form and away.recent_form:
            series = (time_series_momentum(home.recent_form) - time_series_momentum(away.recent_form)) * TIME_SERIES_WEIGHT
            if series != 0:
                value += series
                reasoning.append(f"Time-series momentum {series:+.1f}")

        league_constant = get_league_profile(match.league).power_index_adjustment
        if league_constant:
            value += league_constant
            reasoning.append(f"{match.league.value} calibration {league_constant:+.0f}")

        pulled = bayesian_pull(value)
        if pulled != value:
            reasoning.append(f"Regressed toward the mean ({value:.1f} -> {pulled:.1f})")

        side, confidence = resolve_side(pulled, ML_POWER_INDEX_BOUNDS)
        return VariantDraft(recommended=side, raw_confidence=confidence, reasoning=reasoning)
