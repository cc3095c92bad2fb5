"""
Match-Correlated Event Log
==========================

The sink engine components receive by injection for diagnostics. Events are
kept in a bounded buffer for inspection and mirrored to the stdlib logger
``engine.events`` at DEBUG, tagged with the match being processed.

Usage:
    events = EventLog(capacity=200)
    engine = PredictionEngine(cache, event_log=events)

    with match_context("nba-bos-nyk"):
        engine.predict(match)

    events.recent(5)
    # [{"timestamp": "...", "message": "cache miss", "match_id": "nba-bos-nyk", ...}]
"""

import logging
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterator, List, Optional

_current_match: ContextVar[Optional[str]] = ContextVar("current_match", default=None)


def current_match_id() -> Optional[str]:
    return _current_match.get()


@contextmanager
def match_context(match_id: str) -> Iterator[None]:
    """Tag every event logged inside the block with ``match_id``."""
    token = _current_match.set(match_id)
    try:
        yield
    finally:
        _current_match.reset(token)


class EventLog:
    """
    Bounded, inspectable event sink.

    Oldest events drop first once ``capacity`` is reached. Log records carry
    ``match_id`` and ``event_fields`` attributes for handlers that want them.
    """

    def __init__(self, capacity: int = 200, logger: logging.Logger = None):
        self.capacity = capacity
        self._events: Deque[Dict[str, Any]] = deque(maxlen=capacity)
        self._logger = logger or logging.getLogger("engine.events")

    def log(self, message: str, **fields: Any) -> None:
        event: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": message,
        }
        match_id = current_match_id()
        if match_id and "match_id" not in fields:
            event["match_id"] = match_id
        event.update(fields)
        self._events.append(event)
        self._logger.debug(
            message,
            extra={"match_id": event.get("match_id"), "event_fields": fields},
        )

    def recent(self, limit: int = None) -> List[Dict[str, Any]]:
        events = list(self._events)
        if limit is not None:
            return events[-limit:]
        return events

    def messages(self) -> List[str]:
        return [event["message"] for event in self._events]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


class NullEventLog(EventLog):
    """Drops everything. Default when no sink is injected."""

    def __init__(self):
        super().__init__(capacity=0)

    def log(self, message: str, **fields: Any) -> None:
        return None
