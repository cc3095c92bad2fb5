"""
SEEDED_RANDOM.PY - Deterministic per-match pseudo-randomness

Situational, matchup and simulated-weather flavor must be identical every time
the same match is scored. Seeds come from a 32-bit FNV-1a hash of the match id
(plus an optional salt so independent consumers draw independent streams),
and values come from a xorshift32 generator.

Usage:
    from core.seeded_random import SeededRandom

    rng = SeededRandom.for_match("nba-2026-10-18-bos-nyk", salt="statistical-edge")
    rng.random()          # float in [0, 1)
    rng.randint(1, 4)     # inclusive
    rng.chance(0.15)      # bool
"""

import time
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def stable_hash(text: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of text."""
    h = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * _FNV_PRIME) & _MASK32
    return h


class SeededRandom:
    """Small xorshift32 generator. Not for cryptographic use."""

    def __init__(self, seed: int):
        state = seed & _MASK32
        # xorshift has a fixed point at zero
        self._state = state or 0x9E3779B9
        self.seed = seed

    @classmethod
    def for_match(cls, match_id: str, salt: str = "") -> "SeededRandom":
        return cls(stable_hash(f"{match_id}:{salt}" if salt else str(match_id)))

    @classmethod
    def from_clock(cls, offset: int = 0, now: Optional[float] = None) -> "SeededRandom":
        """Wall-clock seeded stream; only for values computed once and then cached."""
        millis = int((time.time() if now is None else now) * 1000)
        return cls(stable_hash(f"{millis}:{offset}"))

    def next_uint32(self) -> int:
        x = self._state
        x ^= (x << 13) & _MASK32
        x ^= x >> 17
        x ^= (x << 5) & _MASK32
        self._state = x & _MASK32
        return self._state

    def random(self) -> float:
        return self.next_uint32() / 4294967296.0

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Inclusive on both ends, like random.randint."""
        return low + int(self.random() * (high - low + 1))

    def chance(self, probability: float) -> bool:
        return self.random() < probability

    def choice(self, options: Sequence[T]) -> T:
        return options[int(self.random() * len(options))]
