"""
tests/conftest.py - Pytest configuration and fixtures

Makes the suite environment-agnostic by:
- Pointing PREDICTION_CACHE_PATH at a temp directory
- Providing match / team / quote factories so tests only spell out the
  fields they care about
- Providing a controllable clock for TTL and debounce tests
"""

import os
import sys
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.persistence import MemoryStore
from core.structured_logging import EventLog
from engine.base_engine import PredictionEngine
from engine.prediction_cache import PredictionCache
from match_schema import LiveOdds, Match, Odds, Sportsbook, Team

START = datetime(2026, 10, 18, 12, 0, 0)


@pytest.fixture(scope="session", autouse=True)
def set_cache_path(tmp_path_factory):
    """
    Set PREDICTION_CACHE_PATH to a temp file for the whole session.

    Tests never write next to the checkout or read a developer's cache.
    """
    cache_dir = tmp_path_factory.mktemp("prediction_cache")
    old_value = os.environ.get("PREDICTION_CACHE_PATH")
    os.environ["PREDICTION_CACHE_PATH"] = str(cache_dir / "predictions.json")

    yield cache_dir

    if old_value is not None:
        os.environ["PREDICTION_CACHE_PATH"] = old_value
    elif "PREDICTION_CACHE_PATH" in os.environ:
        del os.environ["PREDICTION_CACHE_PATH"]


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_team(team_id="home", name="Home Team", record=None, form=(), short_name="", stats=None):
    return Team(
        id=team_id,
        name=name,
        short_name=short_name,
        record=record,
        recent_form=form,
        stats=stats or {},
    )


def build_quote(book="book-a", home=2.0, away=1.9, draw=None, minutes=0, available=True):
    return LiveOdds(
        home_win=home,
        away_win=away,
        draw=draw,
        updated_at=START + timedelta(minutes=minutes),
        sportsbook=Sportsbook(id=book, name=book.replace("-", " ").title(), is_available=available),
    )


def build_match(
    match_id="match-1",
    league="NBA",
    home=None,
    away=None,
    home_win=None,
    away_win=None,
    draw=None,
    live_odds=(),
    **fields,
):
    return Match(
        id=match_id,
        league=league,
        home_team=home or build_team("home", "Home Team"),
        away_team=away or build_team("away", "Away Team"),
        odds=Odds(home_win=home_win, away_win=away_win, draw=draw, live_odds=tuple(live_odds)),
        **fields,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_team():
    return build_team


@pytest.fixture
def make_quote():
    return build_quote


@pytest.fixture
def make_match():
    return build_match


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def events():
    return EventLog(capacity=200)


@pytest.fixture
def cache(clock, events):
    return PredictionCache(store=None, clock=clock, debounce=0, event_log=events)


@pytest.fixture
def engine(cache, events):
    return PredictionEngine(cache, event_log=events)


@pytest.fixture
def strong_home_match():
    """Home side dominant on record and form, priced as the favorite."""
    return build_match(
        match_id="nba-strong-home",
        home=build_team("bos", "Boston Celtics", record="40-10", form="WWWWW", short_name="Celtics"),
        away=build_team("det", "Detroit Pistons", record="10-40", form="LLLLL", short_name="Pistons"),
        home_win=1.5,
        away_win=2.8,
    )
