"""
MLB_MODEL.PY - Baseball-specific prediction model

Replaces the generic engine for MLB. Same neutral start and cache lock, with
run-differential modeling and a deliberately narrow [45, 75] band because
single-game baseball outcomes are high variance.

    confidence = 50
      + (home win pct - away win pct) * 25          (both teams have games)
      + (home run diff - away run diff) * 0.15      run diff = round((pct - 0.5) * 120)
      + (home weighted form - away weighted form) * 5
      + (h2h home wins / total - 0.5) * 15          (3+ meetings)
      + 1.0                                         home field
      + uniform(-2, 2)                              seeded jitter

The side is decided before clamping.
"""

from typing import Optional
import logging

from core.invariants import MLB_MODEL_BOUNDS, NEUTRAL_CONFIDENCE, clamp_to
from core.seeded_random import SeededRandom
from core.structured_logging import EventLog, NullEventLog, match_context
from engine.annotation import annotate_match
from engine.expected_value import pick_expected_value
from engine.prediction_cache import PredictionCache
from engine.team_strength import parse_record, weighted_form_win_rate
from match_schema import Match, Prediction, ProjectedScore, Side, Team

logger = logging.getLogger(__name__)

WIN_PCT_WEIGHT = 25
RUN_DIFF_WEIGHT = 0.15
FORM_WEIGHT = 5
H2H_WEIGHT = 15
H2H_MIN_GAMES = 3
HOME_FIELD = 1.0
JITTER = 2.0
BASE_RUNS = 4.1
RUN_NOISE = 0.7


def calculate_run_differential(team: Team) -> int:
    """Pythagorean-expectation proxy from the season record."""
    wins, _, games = parse_record(team.record)
    if games == 0:
        return 0
    return round((wins / games - 0.5) * 120)


def calculate_mlb_confidence(match: Match, rng: SeededRandom) -> float:
    """Signed home-oriented confidence before clamping."""
    home, away = match.home_team, match.away_team
    home_wins, _, home_games = parse_record(home.record)
    away_wins, _, away_games = parse_record(away.record)

    confidence = NEUTRAL_CONFIDENCE

    if home_games > 0 and away_games > 0:
        confidence += (home_wins / home_games - away_wins / away_games) * WIN_PCT_WEIGHT

    confidence += (calculate_run_differential(home) - calculate_run_differential(away)) * RUN_DIFF_WEIGHT

    home_form = weighted_form_win_rate(home.recent_form)
    away_form = weighted_form_win_rate(away.recent_form)
    if home_form is not None or away_form is not None:
        confidence += ((home_form if home_form is not None else 0.5) -
                       (away_form if away_form is not None else 0.5)) * FORM_WEIGHT

    h2h = match.head_to_head
    if h2h is not None and h2h.total_games >= H2H_MIN_GAMES:
        confidence += (h2h.home_wins / h2h.total_games - 0.5) * H2H_WEIGHT

    confidence += HOME_FIELD
    confidence += rng.uniform(-JITTER, JITTER)
    return confidence


def project_runs(match: Match, rng: SeededRandom) -> ProjectedScore:
    home_factor = calculate_run_differential(match.home_team) / 100
    away_factor = calculate_run_differential(match.away_team) / 100
    home_noise = rng.uniform(-RUN_NOISE, RUN_NOISE)
    away_noise = rng.uniform(-RUN_NOISE, RUN_NOISE)
    return ProjectedScore(
        home=max(0, round(BASE_RUNS + home_factor + home_noise)),
        away=max(0, round(BASE_RUNS + away_factor + away_noise)),
    )


class MLBPredictionModel:
    def __init__(self, cache: PredictionCache, event_log: Optional[EventLog] = None):
        self.cache = cache
        self.events = event_log if event_log is not None else NullEventLog()

    def predict(self, match: Match) -> Match:
        with match_context(match.id):
            return self.cache.get_or_compute(match.id, lambda: self._build(match))

    def _build(self, match: Match) -> Match:
        rng = SeededRandom.for_match(match.id, salt="mlb")
        raw = calculate_mlb_confidence(match, rng)
        recommended = Side.HOME if raw >= NEUTRAL_CONFIDENCE else Side.AWAY
        confidence = float(round(clamp_to(raw, MLB_MODEL_BOUNDS)))

        fields = {}
        if match.odds.has_prices:
            ev = pick_expected_value(match.odds, recommended, confidence)
            fields = {
                "expected_value": ev.expected_value,
                "ev_percentage": ev.ev_percentage,
                "true_probability": ev.true_probability,
            }

        prediction = Prediction(
            recommended=recommended,
            confidence=confidence,
            raw_confidence=round(raw, 2),
            projected_score=project_runs(match, rng),
            **fields,
        )
        self.events.log("mlb prediction locked", recommended=recommended.value, confidence=confidence)
        logger.debug("MLB prediction for %s: %s @ %.0f", match.id, recommended.value, confidence)
        return annotate_match(match, prediction=prediction).match
