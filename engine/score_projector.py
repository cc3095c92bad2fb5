"""
SCORE_PROJECTOR.PY - Projected final score from team strengths

    projected = base_score(league) * (1 + offense_vs_defense + home_factor)

perturbed by a ±5% jitter. The jitter stream is wall-clock seeded by default
(home offset 1, away offset 2); that is only acceptable because the projection
runs once and is then locked by the prediction cache. Tests inject a
SeededRandom instead.
"""

from typing import Optional

from core.seeded_random import SeededRandom
from core.sports import get_league_profile
from engine.home_advantage import calculate_home_advantage
from engine.team_strength import TeamStrength
from match_schema import ProjectedScore, Team

JITTER = 0.05
HOME_OFFSET = 1
AWAY_OFFSET = 2


def _side_score(
    base: float,
    attack: TeamStrength,
    opponent: TeamStrength,
    home_factor: float,
    rng: SeededRandom,
    precision: int,
) -> float:
    offense_vs_defense = (attack.offense - opponent.defense) / 100
    projected = base * (1 + offense_vs_defense + home_factor)
    projected *= 1 + rng.uniform(-JITTER, JITTER)
    return round(max(0.0, projected), precision) if precision else float(max(0, round(projected)))


def project_score(
    home_team: Team,
    home: TeamStrength,
    away: TeamStrength,
    league,
    rng: Optional[SeededRandom] = None,
    now: Optional[float] = None,
) -> ProjectedScore:
    profile = get_league_profile(league)
    home_factor = calculate_home_advantage(home_team, league) / 100

    home_rng = rng or SeededRandom.from_clock(HOME_OFFSET, now=now)
    away_rng = rng or SeededRandom.from_clock(AWAY_OFFSET, now=now)

    return ProjectedScore(
        home=_side_score(profile.base_score, home, away, home_factor, home_rng, profile.score_precision),
        away=_side_score(profile.base_score, away, home, 0.0, away_rng, profile.score_precision),
    )
