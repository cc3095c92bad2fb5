"""
TEAM_STRENGTH.PY - Offense / Defense / Momentum scalars

Derived only from a team's "W-L" record and its recent-form sequence.
Missing data leaves every scalar at the neutral 50.

Usage:
    from engine.team_strength import calculate_team_strength

    strength = calculate_team_strength(match.home_team)
    strength.offense, strength.defense, strength.momentum
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from core.invariants import MOMENTUM_BOUNDS, STRENGTH_BOUNDS, clamp_to
from match_schema import Team

NEUTRAL = 50.0
RECORD_WEIGHT = 0.4
MOMENTUM_WEIGHT = 1.0


@dataclass(frozen=True)
class TeamStrength:
    offense: float = NEUTRAL
    defense: float = NEUTRAL
    momentum: float = NEUTRAL

    @property
    def total(self) -> float:
        return self.offense + self.defense + self.momentum

    def to_dict(self):
        return {
            "offense": self.offense,
            "defense": self.defense,
            "momentum": self.momentum,
        }


def parse_record(record: Optional[str]) -> Tuple[int, int, int]:
    """
    Parse "W-L" or "W-L-T" into (wins, losses, games).

    Malformed or missing records return (0, 0, 0).
    """
    if not record:
        return 0, 0, 0
    parts = record.strip().split("-")
    if len(parts) < 2:
        return 0, 0, 0
    try:
        numbers = [int(p.strip()) for p in parts[:3]]
    except ValueError:
        return 0, 0, 0
    if any(n < 0 for n in numbers):
        return 0, 0, 0
    wins, losses = numbers[0], numbers[1]
    ties = numbers[2] if len(numbers) > 2 else 0
    return wins, losses, wins + losses + ties


def record_win_pct(record: Optional[str]) -> Optional[float]:
    wins, _, games = parse_record(record)
    if games == 0:
        return None
    return wins / games


def form_win_rate(form: Sequence[str], limit: int = None) -> Optional[float]:
    """Unweighted share of W results, or None for an empty form."""
    games = list(form[:limit] if limit else form)
    if not games:
        return None
    return sum(1 for r in games if r == "W") / len(games)


def weighted_form_win_rate(form: Sequence[str], limit: int = None) -> Optional[float]:
    """
    Recency-weighted win rate. Game i (0 = most recent) of n gets weight n - i.
    """
    games = list(form[:limit] if limit else form)
    n = len(games)
    if n == 0:
        return None
    total_weight = n * (n + 1) / 2
    won = sum(n - i for i, r in enumerate(games) if r == "W")
    return won / total_weight


def calculate_team_strength(team: Team) -> TeamStrength:
    offense = NEUTRAL
    defense = NEUTRAL
    momentum = NEUTRAL

    win_pct = record_win_pct(team.record)
    if win_pct is not None:
        shift = (win_pct * 100 - 50) * RECORD_WEIGHT
        offense += shift
        defense += shift

    weighted = weighted_form_win_rate(team.recent_form)
    if weighted is not None:
        momentum += (weighted * 100 - 50) * MOMENTUM_WEIGHT

    return TeamStrength(
        offense=clamp_to(offense, STRENGTH_BOUNDS),
        defense=clamp_to(defense, STRENGTH_BOUNDS),
        momentum=clamp_to(momentum, MOMENTUM_BOUNDS),
    )


def recent_win_rate(team: Team) -> Optional[float]:
    """Form-based win rate, falling back to the season record."""
    rate = form_win_rate(team.recent_form)
    if rate is not None:
        return rate
    return record_win_pct(team.record)
