"""
INJURIES.PY - Smart-score injury factor
========================================

Two ways to score injuries:

1. calculate_injury_score(match) - synchronous heuristic. Starts at 75 and
   treats a team showing three or more losses as a possible injury impact.
2. score_team_injuries(injuries, league) - real reports weighted by
   position and status. Used by services.injury_service.InjuryService.

Position weights are points-of-impact per sport; status multipliers scale
them by how likely the player is to sit:

    out 1.0 | doubtful 0.85 | questionable 0.5 | day-to-day 0.4 | probable 0.2
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from core.sports import League, is_soccer_league
from match_schema import Match, PlayerInjury, Team
from signals.factor import NEGATIVE, NEUTRAL, POSITIVE, FactorScore

FALLBACK_BASE = 75.0
LOSING_STREAK_LOSSES = 3
LOSING_STREAK_PENALTY = 10
NO_INJURIES = "No major injuries reported"
FULL_STRENGTH = "Both teams at full strength"

TEAM_SCORE_FLOOR = 25
IMPACT_SCALE = 1.5
SIGNIFICANT_STATUS = 0.75
DEFAULT_POSITION_WEIGHT = 2.0

STATUS_MULTIPLIERS: Dict[str, float] = {
    "out": 1.0,
    "doubtful": 0.85,
    "questionable": 0.5,
    "day-to-day": 0.4,
    "probable": 0.2,
    "healthy": 0.0,
}

POSITION_WEIGHTS: Dict[str, Dict[str, float]] = {
    "NBA": {"PG": 18, "SG": 16, "SF": 15, "PF": 14, "C": 12, "G": 17, "F": 14.5},
    "NFL": {
        "QB": 12, "RB": 4, "WR": 3, "TE": 2.5, "OL": 2, "OT": 2, "OG": 1.5, "C": 1.5,
        "DE": 2.5, "DT": 2, "LB": 2.5, "CB": 3, "S": 2, "K": 1.5, "P": 0.5,
    },
    "NHL": {"C": 0.8, "LW": 0.7, "RW": 0.7, "D": 0.4, "G": 1.5},
    "MLB": {
        "SP": 2.5, "RP": 0.8, "C": 0.4, "1B": 0.6, "2B": 0.5, "3B": 0.5, "SS": 0.5,
        "LF": 0.5, "CF": 0.5, "RF": 0.5, "DH": 0.6,
    },
    "SOCCER": {
        "GK": 0.8, "CB": 0.3, "LB": 0.25, "RB": 0.25, "CDM": 0.3, "CM": 0.35,
        "CAM": 0.5, "LM": 0.4, "RM": 0.4, "LW": 0.5, "RW": 0.5, "ST": 0.7, "CF": 0.65,
    },
}

_POSITION_FAMILY = {
    League.NBA: "NBA",
    League.NCAAB: "NBA",
    League.WNBA: "NBA",
    League.NFL: "NFL",
    League.NCAAF: "NFL",
    League.NHL: "NHL",
    League.MLB: "MLB",
}


def position_family(league: League) -> str:
    if is_soccer_league(league):
        return "SOCCER"
    return _POSITION_FAMILY.get(league, "NBA")


def position_weight(league: League, position: str) -> float:
    table = POSITION_WEIGHTS[position_family(league)]
    return float(table.get((position or "").upper(), DEFAULT_POSITION_WEIGHT))


def status_multiplier(status: str) -> float:
    key = (status or "").strip().lower().replace(" ", "-")
    return STATUS_MULTIPLIERS.get(key, STATUS_MULTIPLIERS["questionable"])


# =============================================================================
# SYNCHRONOUS HEURISTIC
# =============================================================================


def count_losses(team: Team) -> int:
    """Losses visible in the record string, or in recent form when it has none."""
    losses = (team.record or "").count("L")
    if losses == 0:
        losses = team.recent_form.count("L")
    return losses


def calculate_injury_score(match: Match) -> FactorScore:
    result = FactorScore(score=FALLBACK_BASE)
    for team in (match.home_team, match.away_team):
        if count_losses(team) >= LOSING_STREAK_LOSSES:
            result.add(-LOSING_STREAK_PENALTY, f"losing-streak-{team.id}", 6,
                       f"{team.display_name} on losing streak (possible injury impact)")
    if not result.factors:
        result.note("no-injuries", NEUTRAL, 1, NO_INJURIES)
    return result.clamped()


# =============================================================================
# REPORT-BASED SCORING
# =============================================================================


@dataclass
class TeamInjuryImpact:
    score: int
    total_impact: float
    notable: List[str] = field(default_factory=list)

    def to_dict(self):
        return {"score": self.score, "total_impact": round(self.total_impact, 2), "notable": self.notable}


def filter_team_injuries(injuries: Sequence[PlayerInjury], team: Team) -> List[PlayerInjury]:
    name = team.name.lower()
    short = team.short_name.lower()
    matched = []
    for injury in injuries:
        injury_team = injury.team.lower()
        if not injury_team:
            continue
        if name in injury_team or (short and short in injury_team) or injury_team in name:
            matched.append(injury)
    return matched


def score_team_injuries(injuries: Sequence[PlayerInjury], league: League) -> TeamInjuryImpact:
    """0 impact scores 100; heavy absences bottom out at 25."""
    total = 0.0
    notable = []
    for injury in injuries:
        multiplier = status_multiplier(injury.status)
        total += position_weight(league, injury.position) * multiplier * 10
        if multiplier >= SIGNIFICANT_STATUS:
            notable.append(f"{injury.player_name} ({injury.position}) - {injury.status.upper()}")
    score = max(TEAM_SCORE_FLOOR, 100 - total * IMPACT_SCALE)
    return TeamInjuryImpact(score=round(score), total_impact=total, notable=notable)


def score_match_injuries(match: Match, injuries: Sequence[PlayerInjury]) -> FactorScore:
    """Average of both teams' injury health."""
    home = score_team_injuries(filter_team_injuries(injuries, match.home_team), match.league)
    away = score_team_injuries(filter_team_injuries(injuries, match.away_team), match.league)

    result = FactorScore(score=round((home.score + away.score) / 2))
    for team, impact in ((match.home_team, home), (match.away_team, away)):
        if impact.notable:
            result.note(f"injuries-{team.id}", NEGATIVE, 7,
                        f"{team.display_name}: {', '.join(impact.notable[:2])}")
    if not result.factors:
        result.note("full-strength", POSITIVE, 2, FULL_STRENGTH)
    return result.clamped()
