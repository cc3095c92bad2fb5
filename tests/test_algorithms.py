"""
TEST_ALGORITHMS.PY - ML Power Index, Value Pick Finder, Statistical Edge
========================================================================

Tests verify:
1. Every variant stays inside its confidence bounds
2. Variant picks are locked per (algorithm, match)
3. Statistical Edge is deterministic per match id
4. Calibration pauses flow through to the prediction
5. Away leans in the base prediction keep their side in every variant

Run with: python -m pytest tests/test_algorithms.py -v
"""

import pytest

from core.algorithm_ids import AlgorithmId
from core.invariants import (
    ML_POWER_INDEX_BOUNDS,
    STATISTICAL_EDGE_BOUNDS,
    VALUE_PICK_FINDER_BOUNDS,
)
from engine.algorithms import ALGORITHM_REGISTRY, create_algorithm, predict_all
from engine.algorithms.base import home_oriented, pick_support, resolve_side
from engine.algorithms.ml_power_index import MLPowerIndex, bayesian_pull, time_series_momentum
from engine.algorithms.statistical_edge import (
    StatisticalEdge,
    analyze_injuries,
    categorize_reason,
    parse_impact,
    risk_level,
)
from engine.algorithms.value_pick_finder import ValuePickFinder
from engine.base_engine import PredictionEngine
from engine.calibration import AlgorithmPerformance, CalibrationService
from engine.prediction_cache import PredictionCache
from match_schema import ArbitrageOpportunity, PlayerInjury, Prediction, RiskLevel, Side

BOUNDS = {
    AlgorithmId.ML_POWER_INDEX.value: ML_POWER_INDEX_BOUNDS,
    AlgorithmId.VALUE_PICK_FINDER.value: VALUE_PICK_FINDER_BOUNDS,
    AlgorithmId.STATISTICAL_EDGE.value: STATISTICAL_EDGE_BOUNDS,
}


class TestHelpers:
    def test_home_oriented_reads_base_raw_confidence(self):
        """Base picks state away leans at or under 50, so the raw value is used."""
        away_lean = Prediction(recommended=Side.AWAY, confidence=40, raw_confidence=36.4)
        assert home_oriented(away_lean) == pytest.approx(36.4)

        home_lean = Prediction(recommended=Side.HOME, confidence=70, raw_confidence=70)
        assert home_oriented(home_lean) == 70

    def test_home_oriented_clamps_extreme_raw(self):
        blowout = Prediction(recommended=Side.AWAY, confidence=40, raw_confidence=-12)
        assert home_oriented(blowout) == 15

    def test_home_oriented_mirrors_variant_picks(self):
        variant = Prediction(recommended=Side.AWAY, confidence=70, raw_confidence=70, algorithm_id="x")
        assert home_oriented(variant) == 30

    def test_home_oriented_without_raw(self):
        assert home_oriented(Prediction(recommended=Side.HOME, confidence=70)) == 70
        assert home_oriented(Prediction(recommended=Side.AWAY, confidence=70)) == 30

    def test_pick_support(self):
        away_lean = Prediction(recommended=Side.AWAY, confidence=40, raw_confidence=36.0)
        assert pick_support(away_lean) == pytest.approx(64.0)
        home_lean = Prediction(recommended=Side.HOME, confidence=62, raw_confidence=62.0)
        assert pick_support(home_lean) == pytest.approx(62.0)

    def test_resolve_side(self):
        assert resolve_side(50, (40, 85)) == (Side.HOME, 50)
        assert resolve_side(30, (40, 85)) == (Side.AWAY, 70)
        assert resolve_side(99, (40, 85)) == (Side.HOME, 85)

    def test_bayesian_pull(self):
        assert bayesian_pull(80) == pytest.approx(77)
        assert bayesian_pull(40) == pytest.approx(41.5)
        assert bayesian_pull(60) == 60

    def test_time_series_momentum(self):
        # +5 +4 -3 +2 -1
        assert time_series_momentum(("W", "W", "L", "W", "L")) == 7
        assert time_series_momentum(()) == 0
        assert time_series_momentum(("D", "D")) == 0


class TestRegistry:
    def test_predict_all_covers_every_variant(self, engine, strong_home_match):
        picks = predict_all(strong_home_match, engine)
        assert set(picks) == set(ALGORITHM_REGISTRY)
        for key, match in picks.items():
            low, high = BOUNDS[key]
            assert low <= match.prediction.confidence <= high
            assert match.prediction.algorithm_id == key

    def test_create_by_enum_or_string(self, engine):
        assert isinstance(create_algorithm(AlgorithmId.ML_POWER_INDEX, engine), MLPowerIndex)
        assert isinstance(create_algorithm(AlgorithmId.STATISTICAL_EDGE.value, engine), StatisticalEdge)

    def test_unknown_id_raises(self, engine):
        with pytest.raises(ValueError):
            create_algorithm("not-an-algorithm", engine)


LOPSIDED = {
    "home_favoured": (("40-10", "WWWWW"), ("10-40", "LLLLL")),
    "away_favoured": (("10-40", "LLLLL"), ("40-10", "WWWWW")),
    "neutral": ((None, ()), (None, ())),
}


class TestAwayLean:
    """Away leans in the base prediction carry through to the variants."""

    def test_narrow_away_lean(self, engine, make_match, make_team):
        match = make_match(
            match_id="other-narrow-away",
            league="OTHER",
            home=make_team("h", "Home Team", record="8-12"),
            away=make_team("a", "Away Team", record="12-8"),
        )
        base = engine.base_prediction(match)
        assert base.recommended == Side.AWAY
        assert home_oriented(base) == pytest.approx(48.0)

        prediction = MLPowerIndex(engine).predict(match).prediction
        # 48 - 0.8 matchup -> 47.2 home -> away 52.8
        assert prediction.recommended == Side.AWAY
        assert prediction.confidence == 53

        assert ValuePickFinder(engine).predict(match).prediction.recommended == Side.AWAY

    def test_heavy_away_lean(self, engine, make_match, make_team):
        match = make_match(
            match_id="nba-heavy-away",
            home=make_team("h", "Home Team", record="5-45"),
            away=make_team("a", "Away Team", record="45-5"),
        )
        base = engine.base_prediction(match)
        assert base.recommended == Side.AWAY
        assert home_oriented(base) == pytest.approx(base.raw_confidence)

        prediction = MLPowerIndex(engine).predict(match).prediction
        # 36.4 - 3.2 + 2 -> 35.2, pulled to 38.14 -> away 61.86
        assert prediction.recommended == Side.AWAY
        assert prediction.confidence == 62


class TestBaseDirection:
    @pytest.mark.parametrize("shape", sorted(LOPSIDED))
    @pytest.mark.parametrize("key", sorted(BOUNDS))
    def test_side_and_bounds(self, engine, make_match, make_team, shape, key):
        (home_record, home_form), (away_record, away_form) = LOPSIDED[shape]
        match = make_match(
            match_id=f"nba-{shape}",
            home=make_team("h", "Home Team", record=home_record, form=home_form),
            away=make_team("a", "Away Team", record=away_record, form=away_form),
        )
        base = engine.base_prediction(match)
        prediction = create_algorithm(key, engine).predict(match).prediction

        low, high = BOUNDS[key]
        assert low <= prediction.confidence <= high
        if shape != "neutral":
            assert prediction.recommended == base.recommended


class TestLocking:
    """Each variant caches under its own key."""

    def test_variant_prediction_is_locked(self, engine, strong_home_match):
        first = create_algorithm(AlgorithmId.ML_POWER_INDEX, engine).predict(strong_home_match)
        second = create_algorithm(AlgorithmId.ML_POWER_INDEX, engine).predict(strong_home_match)
        assert second is first

    def test_variants_do_not_share_entries(self, engine, strong_home_match):
        engine.predict(strong_home_match)
        predict_all(strong_home_match, engine)
        assert len(engine.cache) == 4
        assert engine.cache.has_cached(f"{AlgorithmId.VALUE_PICK_FINDER.value}:{strong_home_match.id}")

    def test_input_not_mutated(self, engine, strong_home_match):
        predict_all(strong_home_match, engine)
        assert strong_home_match.prediction is None


class TestMLPowerIndex:
    def test_strong_home_pinned_at_cap(self, engine, strong_home_match):
        prediction = MLPowerIndex(engine).predict(strong_home_match).prediction
        assert prediction.recommended == Side.HOME
        assert prediction.confidence == ML_POWER_INDEX_BOUNDS[1]
        assert any(r.startswith("Regressed toward the mean") for r in prediction.reasoning)

    def test_value_fields_follow_calibrated_confidence(self, engine, strong_home_match):
        prediction = MLPowerIndex(engine).predict(strong_home_match).prediction
        # 0.85 * 0.5 - 0.15
        assert prediction.expected_value == pytest.approx(0.275)
        assert prediction.kelly_fraction > 0

    def test_neutral_match_stays_near_even(self, engine, make_match):
        prediction = MLPowerIndex(engine).predict(make_match()).prediction
        low, high = ML_POWER_INDEX_BOUNDS
        assert low <= prediction.confidence <= high
        assert prediction.expected_value is None


class TestValuePickFinder:
    def test_keeps_base_side(self, engine, strong_home_match):
        base = engine.base_prediction(strong_home_match)
        prediction = ValuePickFinder(engine).predict(strong_home_match).prediction
        assert prediction.recommended == base.recommended

    def test_arbitrage_bonus(self, clock, make_match):
        opportunity = ArbitrageOpportunity(arbitrage_percentage=97, potential_profit=3.0, has_opportunity=True)
        match = make_match()
        plain = ValuePickFinder(PredictionEngine(PredictionCache(clock=clock, debounce=0))).predict(match)
        boosted = ValuePickFinder(
            PredictionEngine(PredictionCache(clock=clock, debounce=0)),
            arbitrage_detector=lambda m: opportunity,
        ).predict(match)
        assert boosted.prediction.raw_confidence == pytest.approx(plain.prediction.raw_confidence + 8)
        assert "Arbitrage opportunity across books" in boosted.prediction.reasoning

    def test_reverse_line_movement_toward_pick(self, engine, make_match, make_quote):
        match = make_match(live_odds=[
            make_quote(home=2.0, away=1.9, minutes=0),
            make_quote(home=2.0, away=1.9, minutes=60),
        ])
        moved = make_match("moved", live_odds=[
            make_quote(home=1.9, away=2.0, minutes=0),
            make_quote(home=2.0, away=1.9, minutes=60),
        ])
        flat = ValuePickFinder(engine).predict(match).prediction
        assert flat.recommended == Side.HOME
        assert "Reverse line movement toward the pick" not in flat.reasoning
        assert "Reverse line movement toward the pick" in ValuePickFinder(engine).predict(moved).prediction.reasoning


class TestStatisticalEdge:
    """Seeded situational and matchup modeling."""

    def test_deterministic_per_match(self, clock, strong_home_match):
        one = StatisticalEdge(PredictionEngine(PredictionCache(clock=clock, debounce=0))).predict(strong_home_match)
        two = StatisticalEdge(PredictionEngine(PredictionCache(clock=clock, debounce=0))).predict(strong_home_match)
        assert one is not two
        assert one.prediction.confidence == two.prediction.confidence
        assert one.prediction.detailed_reasoning == two.prediction.detailed_reasoning
        assert one.prediction.analysis_factors == two.prediction.analysis_factors

    def test_presentation_fields(self, engine, strong_home_match):
        prediction = StatisticalEdge(engine).predict(strong_home_match).prediction
        assert len(prediction.key_factors) <= 5
        impacts = [abs(f.impact) for f in prediction.key_factors]
        assert impacts == sorted(impacts, reverse=True)
        assert prediction.detailed_reasoning.startswith("**Pick: ")
        assert prediction.risk_level == risk_level(prediction.confidence)

    def test_parse_impact(self):
        assert parse_impact("Home on back-to-back (-4)") == -4
        assert parse_impact("Home pace advantage (+2.4)") == 2.4
        assert parse_impact("Both teams on back-to-back (neutral)") == 0.0

    @pytest.mark.parametrize("reason,category", [
        ("Home has 2 more rest days (+2)", "Rest Advantage"),
        ("Home on back-to-back (-4)", "Schedule Fatigue"),
        ("Trap game for home team (-4)", "Schedule Spot"),
        ("Away is elite road team (-5)", "Road Performance"),
        ("Away owns H2H series (-1.0)", "Head-to-Head"),
        ("Home venue lacks atmosphere (-3)", "Venue Factor"),
        ("Something else entirely", "Statistical Factor"),
    ])
    def test_categorize_reason(self, reason, category):
        assert categorize_reason(reason) == category

    def test_risk_level(self):
        assert risk_level(70) is RiskLevel.LOW
        assert risk_level(55) is RiskLevel.MEDIUM
        assert risk_level(54.9) is RiskLevel.HIGH

    def test_nfl_quarterback_out(self, make_match):
        injuries = (PlayerInjury(player_name="Starter", team="Home Team", position="QB", status="out"),)
        score, key_players = analyze_injuries(make_match(league="NFL", injuries=injuries))
        # 62 from reports, -5 for an OUT, -20 for a QB
        assert score == 37
        assert "QB injury creates significant uncertainty" in key_players

    def test_clean_injuries(self, make_match):
        assert analyze_injuries(make_match(league="NFL")) == (75, [])


class TestCalibrationFlow:
    def test_paused_algorithm_marked(self, engine, strong_home_match):
        calibration = CalibrationService()
        results = [(70.0, False)] * 2 + [(70.0, True)] * 8 + [(70.0, False)] * 10
        calibration.update_performance(
            AlgorithmPerformance.from_results(AlgorithmId.ML_POWER_INDEX.value, results)
        )
        prediction = MLPowerIndex(engine, calibration=calibration).predict(strong_home_match).prediction
        assert prediction.calibration.is_paused
        # 85 * 0.85
        assert prediction.confidence == 72
        assert prediction.raw_confidence == 85

    def test_overperformer_stays_inside_variant_bounds(self, engine, strong_home_match):
        calibration = CalibrationService()
        results = [(60.0, False)] * 4 + [(60.0, True)] * 16
        calibration.update_performance(
            AlgorithmPerformance.from_results(AlgorithmId.ML_POWER_INDEX.value, results)
        )
        assert calibration.get_calibration(AlgorithmId.ML_POWER_INDEX.value).multiplier > 1

        prediction = MLPowerIndex(engine, calibration=calibration).predict(strong_home_match).prediction
        assert prediction.raw_confidence == 85
        assert prediction.confidence == ML_POWER_INDEX_BOUNDS[1]
