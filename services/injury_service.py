"""
Injury Report Service
Looks up league injury reports through an async provider and scores a match
Powers: Injuries factor of the SmartScore (calculate_async)
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from env_config import Config
from match_schema import Match, PlayerInjury
from signals.factor import FactorScore
from signals.injuries import calculate_injury_score, score_match_injuries

InjuryRecord = Union[PlayerInjury, Mapping[str, Any]]
InjuryProvider = Callable[[str], Awaitable[Sequence[InjuryRecord]]]


class InjuryService:
    """
    Async injury lookups with a per-league cache.

    provider: async callable league -> list of injury records (PlayerInjury
    or dicts with player_name / team / position / status).
    Any provider error or timeout falls back to the record-based heuristic.
    """

    CACHE_TTL = 300  # 5 minutes

    def __init__(
        self,
        provider: InjuryProvider,
        timeout: float = None,
        cache_ttl: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.timeout = Config.INJURY_LOOKUP_TIMEOUT if timeout is None else timeout
        self.cache_ttl = self.CACHE_TTL if cache_ttl is None else cache_ttl
        self._clock = clock
        self._cache: Dict[str, Tuple[float, List[PlayerInjury]]] = {}

    # ==========================================
    # CACHE
    # ==========================================

    def _cached(self, league: str) -> Optional[List[PlayerInjury]]:
        entry = self._cache.get(league)
        if entry is None:
            return None
        fetched_at, injuries = entry
        if self._clock() - fetched_at > self.cache_ttl:
            del self._cache[league]
            return None
        return injuries

    def clear_cache(self) -> None:
        self._cache.clear()

    # ==========================================
    # LOOKUPS
    # ==========================================

    @staticmethod
    def _parse(record: InjuryRecord) -> PlayerInjury:
        if isinstance(record, PlayerInjury):
            return record
        return PlayerInjury(**dict(record))

    async def get_league_injuries(self, league: str) -> List[PlayerInjury]:
        """
        Raises:
            asyncio.TimeoutError: If the provider does not answer in time
            Exception: Whatever the provider raises, or a malformed record
        """
        cached = self._cached(league)
        if cached is not None:
            return cached

        records = await asyncio.wait_for(self.provider(league), timeout=self.timeout)
        injuries = [self._parse(record) for record in records or []]
        self._cache[league] = (self._clock(), injuries)
        logger.debug(f"Cached {len(injuries)} injuries for {league}")
        return injuries

    async def get_injury_score(self, match: Match) -> FactorScore:
        try:
            injuries = await self.get_league_injuries(match.league.value)
        except asyncio.TimeoutError:
            logger.warning(f"Injury lookup timed out after {self.timeout}s for {match.league.value}; using record heuristic")
            return calculate_injury_score(match)
        except Exception as e:
            logger.warning(f"Injury lookup failed for {match.league.value}: {e}; using record heuristic")
            return calculate_injury_score(match)

        return score_match_injuries(match, injuries)
