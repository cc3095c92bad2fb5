"""
MOMENTUM.PY - Smart-score momentum factor

Starts at 50 and reacts to prediction confidence tiers and both teams'
recent form (win-rate tiers plus three-game streaks). NBA and NHL scores are
scaled by the league's momentum multiplier. Baseball uses its own, flatter
table.
"""

from typing import Optional

from core.sports import League, get_league_profile
from engine.team_strength import form_win_rate
from match_schema import Match, Prediction, Side, Team
from signals.factor import FactorScore


def _team_form(result: FactorScore, team: Team, label: str) -> None:
    rate = form_win_rate(team.recent_form)
    if rate is None:
        return

    if rate >= 0.8:
        result.add(15, f"{label}-hot-streak", 9, f"{label.title()} team on hot streak")
    elif rate >= 0.6:
        result.add(10, f"{label}-form", 7, f"{label.title()} team in good form")
    elif rate <= 0.2:
        result.add(-15, f"{label}-cold-streak", 9, f"{label.title()} team on cold streak")
    elif rate <= 0.3:
        result.add(-10, f"{label}-form-bad", 7, f"{label.title()} team in poor form")

    last_three = team.recent_form[:3]
    if len(last_three) == 3:
        if all(r == "W" for r in last_three):
            result.add(8, f"{label}-winning-streak", 6, f"{label.title()} team on winning streak")
        elif all(r == "L" for r in last_three):
            result.add(-8, f"{label}-losing-streak", 6, f"{label.title()} team on losing streak")


def _mlb_momentum(match: Match, prediction: Optional[Prediction]) -> FactorScore:
    result = FactorScore()
    if prediction is not None:
        if prediction.confidence >= 65:
            result.add(10, "mlb-high-confidence", 7, "High confidence MLB prediction")
        elif prediction.confidence >= 55:
            result.add(5, "mlb-medium-confidence", 5, "Moderate confidence MLB prediction")

    for team, label in ((match.home_team, "home"), (match.away_team, "away")):
        rate = form_win_rate(team.recent_form)
        if rate is None:
            continue
        if rate >= 0.8:
            result.add(12, f"mlb-{label}-hot", 7, f"{label.title()} team winning recently")
        elif rate <= 0.2:
            result.add(-10, f"mlb-{label}-cold", 7, f"{label.title()} team struggling recently")

    if prediction is not None and prediction.recommended == Side.HOME:
        result.add(3, "mlb-home-edge", 3, "Small MLB home field advantage")
    return result.clamped()


def calculate_momentum_score(match: Match, prediction: Optional[Prediction] = None) -> FactorScore:
    prediction = prediction or match.prediction
    if match.league is League.MLB:
        return _mlb_momentum(match, prediction)

    result = FactorScore()
    if prediction is not None:
        if prediction.confidence >= 75:
            result.add(15, "high-confidence", 9, "High confidence prediction")
        elif prediction.confidence >= 60:
            result.add(10, "medium-confidence", 6, "Moderate confidence prediction")

    _team_form(result, match.home_team, "home")
    _team_form(result, match.away_team, "away")

    result.score *= get_league_profile(match.league).momentum_multiplier
    return result.clamped()
