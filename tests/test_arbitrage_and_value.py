"""
TEST_ARBITRAGE_AND_VALUE.PY - Arbitrage detection and expected value
====================================================================

Run with: python -m pytest tests/test_arbitrage_and_value.py -v
"""

import pytest

from engine.arbitrage import detect_arbitrage, detect_match_arbitrage, find_opportunities
from engine.expected_value import (
    calculate_expected_value,
    calculate_kelly_criterion,
    odds_for_side,
    pick_expected_value,
)
from match_schema import Odds, Side


class TestArbitrageDetection:
    """Best price per outcome across distinct books."""

    def test_two_way_opportunity(self, make_quote):
        quotes = [
            make_quote("book-a", home=2.10, away=1.90),
            make_quote("book-b", home=1.90, away=2.10),
        ]
        opp = detect_arbitrage(quotes, match_id="m")

        assert opp.has_opportunity
        assert opp.arbitrage_percentage == 95.24
        assert opp.potential_profit == pytest.approx(5.0)
        assert opp.best_home.sportsbook == "Book A"
        assert opp.best_away.sportsbook == "Book B"
        assert opp.sportsbooks == ("Book A", "Book B")
        assert opp.stake_percentages == {"home": 50.0, "away": 50.0}
        assert opp.is_premium
        assert not opp.is_three_way

    def test_no_opportunity(self, make_quote):
        quotes = [make_quote("book-a", 1.80, 1.80), make_quote("book-b", 1.80, 1.80)]
        opp = detect_arbitrage(quotes)

        assert not opp.has_opportunity
        assert opp.arbitrage_percentage == pytest.approx(111.11)
        assert opp.potential_profit == 0.0

    def test_single_book_is_insufficient_data(self, make_quote):
        opp = detect_arbitrage([make_quote("book-a", 2.5, 2.5)])
        assert opp.insufficient_data
        assert not opp.has_opportunity
        assert opp.arbitrage_percentage == 100.0

    def test_repeat_quotes_from_one_book_count_once(self, make_quote):
        quotes = [make_quote("book-a", 2.5, 2.5, minutes=0), make_quote("book-a", 2.6, 2.4, minutes=30)]
        assert detect_arbitrage(quotes).insufficient_data

    def test_unavailable_books_are_ignored(self, make_quote):
        quotes = [
            make_quote("book-a", 2.10, 1.90),
            make_quote("book-b", 1.90, 2.10, available=False),
        ]
        assert detect_arbitrage(quotes).insufficient_data

    def test_three_way_market(self, make_quote):
        quotes = [
            make_quote("book-a", home=3.2, away=2.5, draw=3.4),
            make_quote("book-b", home=2.9, away=2.8, draw=3.6),
        ]
        opp = detect_arbitrage(quotes)

        assert opp.is_three_way
        assert opp.best_draw.odds == 3.6
        # 1/3.2 + 1/2.8 + 1/3.6 = 0.9484
        assert opp.has_opportunity
        assert sum(opp.stake_percentages.values()) == pytest.approx(100.0, abs=0.05)

    def test_find_opportunities_sorted_by_profit(self, make_match, make_quote):
        small = make_match("small", live_odds=[make_quote("book-a", 2.02, 1.95), make_quote("book-b", 1.95, 2.02)])
        large = make_match("large", live_odds=[make_quote("book-a", 2.20, 1.80), make_quote("book-b", 1.80, 2.20)])
        none = make_match("none", live_odds=[make_quote("book-a", 1.8, 1.8), make_quote("book-b", 1.8, 1.8)])
        thin = make_match("thin")

        found = find_opportunities([small, none, large, thin])
        assert [o.match_id for o in found] == ["large", "small"]

    def test_match_wrapper(self, make_match, make_quote):
        match = make_match(live_odds=[make_quote("book-a", 2.1, 1.9), make_quote("book-b", 1.9, 2.1)])
        assert detect_match_arbitrage(match).match_id == "match-1"


class TestExpectedValue:
    def test_reference_ev(self):
        ev = calculate_expected_value(0.6, 2.0)
        assert ev.expected_value == pytest.approx(0.2)
        assert ev.ev_percentage == pytest.approx(20.0)
        assert ev.is_positive

    def test_degenerate_odds_carry_no_value(self):
        assert calculate_expected_value(0.6, 1.0).expected_value == 0.0
        assert calculate_expected_value(0.6, None).decimal_odds == 0.0

    def test_quarter_kelly(self):
        kelly = calculate_kelly_criterion(0.6, 2.0)
        assert kelly.full_kelly == pytest.approx(0.2)
        assert kelly.kelly_fraction == pytest.approx(0.05)
        assert kelly.kelly_stake_units == pytest.approx(5.0)

    def test_negative_edge_stakes_nothing(self):
        kelly = calculate_kelly_criterion(0.4, 2.0)
        assert kelly.kelly_fraction == 0.0
        assert kelly.full_kelly < 0
        assert calculate_kelly_criterion(1.0, 2.0).kelly_fraction == 0.0

    def test_draw_price_defaults(self):
        assert odds_for_side(Odds(home_win=2.0, away_win=3.0), Side.DRAW) == 3.0
        assert odds_for_side(Odds(home_win=2.0, away_win=3.0, draw=3.5), Side.DRAW) == 3.5

    def test_pick_expected_value(self):
        ev = pick_expected_value(Odds(home_win=2.5, away_win=1.6), Side.HOME, 50)
        assert ev.expected_value == pytest.approx(0.25)
