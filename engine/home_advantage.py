"""Dynamic home advantage: league baseline regressed by the home team's form."""

from core.sports import get_league_profile
from engine.team_strength import recent_win_rate
from match_schema import Team

HOT_TEAM_RATE = 0.6
COLD_TEAM_RATE = 0.4
HOT_TEAM_SCALE = 0.8
COLD_TEAM_SCALE = 1.2


def calculate_home_advantage(team: Team, league) -> float:
    base = get_league_profile(league).home_advantage
    rate = recent_win_rate(team)
    if rate is None:
        return base
    # Regression toward the mean
    if rate > HOT_TEAM_RATE:
        return base * HOT_TEAM_SCALE
    if rate < COLD_TEAM_RATE:
        return base * COLD_TEAM_SCALE
    return base
