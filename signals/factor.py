"""
FACTOR.PY - Shared result shape for smart-score factor modules

Every factor module returns a FactorScore:
- score: float (0-100, clamped)
- factors: explanation entries (key, impact, weight, description)
"""

from dataclasses import dataclass, field
from typing import List

from core.invariants import SMART_SCORE_BOUNDS, clamp_to

POSITIVE = "positive"
NEGATIVE = "negative"
NEUTRAL = "neutral"


@dataclass(frozen=True)
class Factor:
    key: str
    impact: str
    weight: int
    description: str

    def to_dict(self):
        return {
            "key": self.key,
            "impact": self.impact,
            "weight": self.weight,
            "description": self.description,
        }


@dataclass
class FactorScore:
    score: float = 50.0
    factors: List[Factor] = field(default_factory=list)

    def add(self, delta: float, key: str, weight: int, description: str) -> None:
        """Apply delta and record why. Sign of delta sets the impact label."""
        self.score += delta
        impact = POSITIVE if delta > 0 else NEGATIVE if delta < 0 else NEUTRAL
        self.factors.append(Factor(key, impact, weight, description))

    def note(self, key: str, impact: str, weight: int, description: str) -> None:
        self.factors.append(Factor(key, impact, weight, description))

    def clamped(self) -> "FactorScore":
        return FactorScore(score=round(clamp_to(self.score, SMART_SCORE_BOUNDS), 1), factors=list(self.factors))

    def descriptions(self) -> List[str]:
        return [f.description for f in self.factors]

    def to_dict(self):
        return {
            "score": self.score,
            "factors": [f.to_dict() for f in self.factors],
        }
