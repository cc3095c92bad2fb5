"""
PREDICTION_CACHE.PY - Per-match prediction lock

The first prediction computed for a match id is stored and handed back
unchanged on every later call until its TTL expires. Algorithms are allowed
to be stochastic because of this: nothing is ever recomputed inside the
window.

RULES:
1. Keyed by match id; a hit returns the exact stored object
2. Expired entries are evicted lazily on read
3. At capacity, the oldest 10% (by insertion timestamp) are evicted
4. Persistence goes through an injected Store, debounced (~1s idle)
5. Only non-expired entries that carry a prediction and serialize under
   CACHE_MAX_ENTRY_BYTES are persisted

Losing an unflushed batch on process exit is accepted: predictions simply
recompute and re-cache next session.

USAGE:
    from core.persistence import JsonFileStore
    from engine.prediction_cache import PredictionCache

    cache = PredictionCache(store=JsonFileStore(path))
    cache.load()
    locked = cache.get_or_compute(match.id, lambda: annotate(match))
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import json
import logging
import math
import threading
import time

from core.invariants import (
    CACHE_DEFAULT_TTL_SECONDS,
    CACHE_EVICTION_FRACTION,
    CACHE_MAX_ENTRY_BYTES,
    CACHE_MAX_SIZE,
    CACHE_PERSIST_DEBOUNCE_SECONDS,
)
from core.persistence import Store
from core.structured_logging import EventLog, NullEventLog
from match_schema import Match

logger = logging.getLogger(__name__)


@dataclass
class CachedPrediction:
    match: Match
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp >= self.ttl

    def to_dict(self):
        return {
            "match": self.match.model_dump(mode="json"),
            "timestamp": self.timestamp,
            "ttl": self.ttl,
        }


class PredictionCache:
    """Process-wide memoization of annotated matches, constructed once at startup."""

    def __init__(
        self,
        store: Optional[Store] = None,
        ttl: float = CACHE_DEFAULT_TTL_SECONDS,
        max_size: int = CACHE_MAX_SIZE,
        debounce: float = CACHE_PERSIST_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.time,
        max_entry_bytes: int = CACHE_MAX_ENTRY_BYTES,
        event_log: Optional[EventLog] = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.store = store
        self.ttl = ttl
        self.max_size = max_size
        self.debounce = debounce
        self.max_entry_bytes = max_entry_bytes
        self._clock = clock
        self._events = event_log if event_log is not None else NullEventLog()
        self._entries: Dict[str, CachedPrediction] = {}
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self.evicted_count = 0

    # ==========================================
    # READS
    # ==========================================

    def _live_entry(self, match_id: str) -> Optional[CachedPrediction]:
        with self._lock:
            entry = self._entries.get(match_id)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[match_id]
                self._events.log("cache entry expired", match_id=match_id)
                self._schedule_persist()
                return None
            return entry

    def has_cached(self, match_id: str) -> bool:
        return self._live_entry(match_id) is not None

    def get(self, match_id: str) -> Optional[Match]:
        entry = self._live_entry(match_id)
        return entry.match if entry else None

    def get_many(self, match_ids: Iterable[str]) -> Dict[str, Match]:
        found = {}
        for match_id in match_ids:
            match = self.get(match_id)
            if match is not None:
                found[match_id] = match
        return found

    # ==========================================
    # WRITES
    # ==========================================

    def put(self, match: Match, ttl: Optional[float] = None, key: Optional[str] = None) -> Match:
        """Store match under key (defaults to match.id) and return it unchanged."""
        key = key or match.id
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_oldest()
            self._entries[key] = CachedPrediction(
                match=match,
                timestamp=self._clock(),
                ttl=self.ttl if ttl is None else ttl,
            )
            self._schedule_persist()
        return match

    def put_many(self, matches: Iterable[Match], ttl: Optional[float] = None) -> int:
        count = 0
        with self._lock:
            for match in matches:
                self.put(match, ttl)
                count += 1
        return count

    def get_or_compute(self, key: str, compute: Callable[[], Match], ttl: Optional[float] = None) -> Match:
        """
        Return the locked match for key, computing and storing it on a miss.

        compute runs at most once per TTL window for a given key. Algorithm
        variants use "<algorithm_id>:<match_id>" keys; the base engine uses
        the bare match id.
        """
        with self._lock:
            cached = self.get(key)
            if cached is not None:
                self._events.log("cache hit", cache_key=key)
                return cached
            self._events.log("cache miss", cache_key=key)
            return self.put(compute(), ttl, key=key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._schedule_persist()
        self._events.log("cache cleared")

    def _evict_oldest(self) -> None:
        count = math.ceil(self.max_size * CACHE_EVICTION_FRACTION)
        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)[:count]
        for match_id, _ in oldest:
            del self._entries[match_id]
        self.evicted_count += len(oldest)
        self._events.log("cache evicted oldest entries", count=len(oldest))
        logger.debug("Evicted %d cached predictions (max_size=%d)", len(oldest), self.max_size)

    def stats(self):
        with self._lock:
            now = self._clock()
            expired = sum(1 for e in self._entries.values() if e.is_expired(now))
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "expired_pending": expired,
                "evicted": self.evicted_count,
                "ttl_seconds": self.ttl,
                "persisted": self.store is not None,
            }

    def __len__(self) -> int:
        return len(self._entries)

    # ==========================================
    # PERSISTENCE
    # ==========================================

    def _schedule_persist(self) -> None:
        if self.store is None:
            return
        if self.debounce <= 0:
            self.flush()
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.debounce, self.flush)
        self._timer.daemon = True
        self._timer.start()

    def _serializable(self) -> Dict[str, dict]:
        now = self._clock()
        payload: Dict[str, dict] = {}
        for match_id, entry in self._entries.items():
            if entry.is_expired(now) or entry.match.prediction is None:
                continue
            data = entry.to_dict()
            if len(json.dumps(data, default=str)) > self.max_entry_bytes:
                continue
            payload[match_id] = data
        return payload

    def flush(self) -> int:
        """Write the current snapshot to the store now. Returns entries written."""
        if self.store is None:
            return 0
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            payload = self._serializable()
        try:
            replace_all = getattr(self.store, "replace_all", None)
            if replace_all is not None:
                replace_all(payload)
            else:
                for key, _ in self.store.items():
                    if key not in payload:
                        self.store.delete(key)
                for key, value in payload.items():
                    self.store.set(key, value)
        except OSError as e:
            logger.warning("Prediction cache persist failed: %s", e)
            return 0
        return len(payload)

    def load(self) -> int:
        """Restore non-expired entries from the store. Malformed entries are dropped."""
        if self.store is None:
            return 0
        now = self._clock()
        restored: List[Tuple[str, CachedPrediction]] = []
        for key, raw in self.store.items():
            try:
                entry = CachedPrediction(
                    match=Match.model_validate(raw["match"]),
                    timestamp=float(raw["timestamp"]),
                    ttl=float(raw["ttl"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Discarding cached prediction %s: %s", key, e)
                continue
            if not entry.is_expired(now):
                restored.append((key, entry))
        with self._lock:
            for key, entry in sorted(restored, key=lambda item: item[1].timestamp):
                self._entries[key] = entry
            while len(self._entries) > self.max_size:
                self._evict_oldest()
        self._events.log("cache loaded", count=len(restored))
        return len(restored)

    def close(self) -> None:
        """Cancel any pending debounce and write synchronously."""
        self.flush()
