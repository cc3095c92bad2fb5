"""
TEST_PREDICTION_CACHE.PY - Prediction lock, eviction and persistence
=====================================================================

Run with: python -m pytest tests/test_prediction_cache.py -v
"""

import pytest

from core.persistence import JsonFileStore, MemoryStore
from engine.annotation import annotate_match
from engine.prediction_cache import PredictionCache
from match_schema import Prediction, Side


def _predicted(match, confidence=60.0):
    return annotate_match(match, prediction=Prediction(recommended=Side.HOME, confidence=confidence)).match


class TestLocking:
    """First computed result wins until the TTL expires."""

    def test_get_or_compute_runs_once(self, cache, make_match):
        calls = []

        def compute():
            calls.append(1)
            return _predicted(make_match())

        first = cache.get_or_compute("match-1", compute)
        second = cache.get_or_compute("match-1", compute)
        assert second is first
        assert len(calls) == 1

    def test_expiry_is_lazy_on_read(self, cache, clock, make_match):
        cache.put(make_match())
        clock.advance(cache.ttl - 1)
        assert cache.has_cached("match-1")
        clock.advance(1)
        assert cache.get("match-1") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self, cache, clock, make_match):
        cache.put(make_match(), ttl=10)
        clock.advance(10)
        assert not cache.has_cached("match-1")

    def test_custom_keys_are_independent(self, cache, make_match):
        match = make_match()
        cache.put(match)
        cache.put(_predicted(match), key="variant:match-1")
        assert cache.get("match-1").prediction is None
        assert cache.get("variant:match-1").prediction is not None

    def test_get_many_skips_missing(self, cache, make_match):
        cache.put_many([make_match("a"), make_match("b")])
        assert set(cache.get_many(["a", "b", "c"])) == {"a", "b"}

    def test_clear(self, cache, make_match):
        cache.put(make_match())
        cache.clear()
        assert len(cache) == 0

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            PredictionCache(max_size=0)


class TestEviction:
    """At capacity the oldest 10% by insertion time go."""

    def test_501st_entry_evicts_oldest_fifty(self, cache, clock, make_match):
        for i in range(501):
            cache.put(make_match(f"match-{i}"))
            clock.advance(1)

        assert len(cache) == 451
        assert cache.evicted_count == 50
        assert not cache.has_cached("match-0")
        assert not cache.has_cached("match-49")
        assert cache.has_cached("match-50")
        assert cache.has_cached("match-500")

    def test_overwrite_does_not_evict(self, clock, make_match):
        cache = PredictionCache(max_size=2, clock=clock)
        cache.put(make_match("a"))
        cache.put(make_match("b"))
        cache.put(make_match("a"))
        assert len(cache) == 2
        assert cache.evicted_count == 0

    def test_stats(self, cache, make_match):
        cache.put(make_match())
        stats = cache.stats()
        assert stats["size"] == 1
        assert stats["max_size"] == 500
        assert stats["persisted"] is False


class TestPersistence:
    """Snapshots go through the injected Store."""

    def test_only_predicted_entries_are_persisted(self, clock, make_match):
        store = MemoryStore()
        cache = PredictionCache(store=store, clock=clock, debounce=0)
        cache.put(make_match("bare"))
        cache.put(_predicted(make_match("predicted")))

        keys = [key for key, _ in store.items()]
        assert keys == ["predicted"]
        blob = store.get("predicted")
        assert set(blob) == {"match", "timestamp", "ttl"}

    def test_oversized_entries_stay_in_memory(self, clock, make_match):
        store = MemoryStore()
        cache = PredictionCache(store=store, clock=clock, debounce=0, max_entry_bytes=10)
        cache.put(_predicted(make_match()))
        assert len(store) == 0
        assert cache.has_cached("match-1")

    def test_load_restores_entries(self, clock, make_match):
        store = MemoryStore()
        writer = PredictionCache(store=store, clock=clock, debounce=0)
        original = _predicted(make_match(), confidence=72.0)
        writer.put(original)

        reader = PredictionCache(store=store, clock=clock, debounce=0)
        assert reader.load() == 1
        restored = reader.get("match-1")
        assert restored.model_dump() == original.model_dump()
        assert restored.prediction.confidence == 72.0

    def test_load_skips_expired_and_malformed(self, clock, make_match):
        good = _predicted(make_match("good"))
        store = MemoryStore({
            "good": {"match": good.model_dump(mode="json"), "timestamp": clock(), "ttl": 1800},
            "old": {"match": good.model_dump(mode="json"), "timestamp": clock() - 5000, "ttl": 1800},
            "broken": {"match": {"id": "broken"}, "timestamp": clock(), "ttl": 1800},
            "missing": {"timestamp": clock()},
        })
        cache = PredictionCache(store=store, clock=clock, debounce=0)
        assert cache.load() == 1
        assert cache.has_cached("good")

    def test_json_file_round_trip(self, tmp_path, clock, make_match):
        path = str(tmp_path / "predictions.json")
        cache = PredictionCache(store=JsonFileStore(path), clock=clock, debounce=0)
        cache.put(_predicted(make_match()))

        reloaded = PredictionCache(store=JsonFileStore(path), clock=clock, debounce=0)
        assert reloaded.load() == 1
        assert reloaded.get("match-1").prediction.recommended == Side.HOME

    def test_debounced_flush_on_close(self, clock, make_match):
        store = MemoryStore()
        cache = PredictionCache(store=store, clock=clock, debounce=60)
        cache.put(_predicted(make_match()))
        assert len(store) == 0
        cache.close()
        assert len(store) == 1

    def test_flush_without_store(self, cache):
        assert cache.flush() == 0
        assert cache.load() == 0
