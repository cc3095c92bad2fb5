"""
TEST_STRUCTURED_LOGGING.PY - Tests for the Match-Correlated Event Log
======================================================================

Tests verify:
1. Match ID context
2. Log records mirrored to the "engine.events" logger
3. EventLog ring buffer and the NullEventLog default
4. Engines keep an injected EventLog even while it is empty

Run with: python -m pytest tests/test_structured_logging.py -v
"""

import logging

from core.structured_logging import (
    EventLog,
    NullEventLog,
    current_match_id,
    match_context,
)
from engine.base_engine import PredictionEngine
from engine.smart_score import SmartScoreCalculator


class TestMatchIdContext:
    """Tests for match ID context management."""

    def test_no_match_outside_context(self):
        assert current_match_id() is None

    def test_match_context_restores_previous(self):
        """Nested contexts unwind to the outer match id."""
        with match_context("outer"):
            with match_context("inner"):
                assert current_match_id() == "inner"
            assert current_match_id() == "outer"
        assert current_match_id() is None

    def test_context_resets_on_error(self):
        try:
            with match_context("nba-bos-nyk"):
                raise ValueError("boom")
        except ValueError:
            pass
        assert current_match_id() is None


class TestLogForwarding:
    """Events reach the stdlib logger with match correlation attached."""

    def test_record_carries_match_id_and_fields(self, caplog):
        events = EventLog()
        with caplog.at_level(logging.DEBUG, logger="engine.events"):
            with match_context("nfl-kc-buf"):
                events.log("prediction locked", confidence=64.0)

        record = caplog.records[-1]
        assert record.name == "engine.events"
        assert record.getMessage() == "prediction locked"
        assert record.match_id == "nfl-kc-buf"
        assert record.event_fields == {"confidence": 64.0}

    def test_record_match_id_none_outside_context(self, caplog):
        events = EventLog()
        with caplog.at_level(logging.DEBUG, logger="engine.events"):
            events.log("cache miss")
        assert caplog.records[-1].match_id is None

    def test_custom_logger(self, caplog):
        events = EventLog(logger=logging.getLogger("engine.custom"))
        with caplog.at_level(logging.DEBUG, logger="engine.custom"):
            events.log("hello")
        assert caplog.records[-1].name == "engine.custom"

    def test_null_event_log_emits_nothing(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="engine.events"):
            NullEventLog().log("ignored")
        assert caplog.records == []


class TestEventLog:
    """Tests for the injectable event sink."""

    def test_events_carry_match_id_from_context(self):
        events = EventLog()
        with match_context("match-9"):
            events.log("cache miss", cache_key="match-9")

        event = events.recent()[0]
        assert event["message"] == "cache miss"
        assert event["match_id"] == "match-9"
        assert event["cache_key"] == "match-9"

    def test_capacity_drops_oldest(self):
        events = EventLog(capacity=3)
        for i in range(5):
            events.log(f"event {i}")

        assert len(events) == 3
        assert events.messages() == ["event 2", "event 3", "event 4"]
        assert [e["message"] for e in events.recent(2)] == ["event 3", "event 4"]

    def test_clear(self):
        events = EventLog()
        events.log("one")
        events.clear()
        assert len(events) == 0

    def test_null_event_log_drops_everything(self):
        events = NullEventLog()
        events.log("ignored", value=1)
        assert len(events) == 0
        assert events.recent() == []


class TestEventLogInjection:
    """An empty EventLog is falsy; engines must still keep the injected instance."""

    def test_engine_keeps_empty_event_log(self, cache):
        events = EventLog()
        engine = PredictionEngine(cache, event_log=events)
        assert engine.events is events
        assert engine.mlb_model.events is events

    def test_smart_score_keeps_empty_event_log(self):
        events = EventLog()
        assert SmartScoreCalculator(event_log=events).events is events

    def test_engine_logs_into_injected_sink(self, engine, events, make_match):
        engine.predict(make_match())
        assert "cache miss" in events.messages()
        assert "base prediction locked" in events.messages()
