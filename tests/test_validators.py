"""
TEST_VALIDATORS.PY - Cross-algorithm agreement, bias checks, consensus
======================================================================

Run with: python -m pytest tests/test_validators.py -v
"""

import pytest

from core.algorithm_ids import AlgorithmId
from core.invariants import CALIBRATION_WEIGHT_BOUNDS, CONSENSUS_BOUNDS
from engine.annotation import annotate_match
from engine.calibration import AlgorithmPerformance
from match_schema import AgreementLevel, CalibrationMeta, Prediction, Side
from validators import (
    agreement_level,
    annotate_validation,
    compute_weights,
    default_weights,
    synthesize_consensus,
    validate_algorithms,
    validate_prediction,
)

ML = AlgorithmId.ML_POWER_INDEX.value
VPF = AlgorithmId.VALUE_PICK_FINDER.value
SE = AlgorithmId.STATISTICAL_EDGE.value


def _pick(side, confidence=60.0, paused=False, **fields):
    calibration = CalibrationMeta(is_paused=True) if paused else None
    return Prediction(recommended=side, confidence=confidence, calibration=calibration, **fields)


class TestCrossAlgorithm:
    """Primary pick vs variant picks."""

    def test_two_of_three_is_medium(self):
        validation = validate_algorithms(
            _pick(Side.HOME),
            {ML: _pick(Side.HOME), VPF: _pick(Side.HOME), SE: _pick(Side.AWAY)},
        )
        assert validation.matches == 2
        assert validation.total == 3
        assert validation.agreement_level is AgreementLevel.MEDIUM
        assert validation.consensus_score == 67
        assert validation.algorithm_picks[SE] == Side.AWAY

    @pytest.mark.parametrize("matches,total,level", [
        (3, 3, AgreementLevel.HIGH),
        (1, 3, AgreementLevel.LOW),
        (0, 3, AgreementLevel.CONFLICTED),
        (1, 2, AgreementLevel.CONFLICTED),
        (0, 0, AgreementLevel.CONFLICTED),
    ])
    def test_agreement_levels(self, matches, total, level):
        assert agreement_level(matches, total) is level

    def test_enum_keys_are_normalized(self):
        validation = validate_algorithms(_pick(Side.AWAY), {AlgorithmId.ML_POWER_INDEX: _pick(Side.AWAY)})
        assert list(validation.algorithm_picks) == [ML]
        assert validation.agreement_level is AgreementLevel.HIGH

    def test_unpredicted_match_raises(self, make_match):
        with pytest.raises(ValueError):
            validate_algorithms(make_match(), {ML: _pick(Side.HOME)})

    def test_annotate_validation(self, make_match):
        match = annotate_match(make_match(), prediction=_pick(Side.HOME)).match
        validated = annotate_validation(match, {ML: _pick(Side.AWAY)})
        assert validated.algorithm_validation.consensus_score == 0
        assert match.algorithm_validation is None


class TestPredictionValidator:
    """Record-based bias flags."""

    def test_home_bias(self, make_match, make_team):
        match = make_match(home=make_team(record="10-40"), away=make_team("a", "Away", record="40-10"))
        result = validate_prediction(match, _pick(Side.HOME, 70))
        assert result.bias_detected
        assert result.bias_type == "home-team"
        assert result.validation_score == 85

    def test_favorite_bias(self, make_match, make_team):
        match = make_match(home=make_team(record="20-20"), away=make_team("a", "Away", record="20-20"))
        result = validate_prediction(match, _pick(Side.HOME, 80))
        assert result.bias_type == "favorite-team"
        assert result.validation_score == 90

    def test_confidence_mismatch(self, make_match):
        result = validate_prediction(make_match(), _pick(Side.HOME, 45))
        assert not result.bias_detected
        assert result.validation_score == 95
        assert result.notes == ["Recommendation/confidence mismatch"]

    def test_missing_records_skip_bias_checks(self, make_match):
        result = validate_prediction(make_match(), _pick(Side.HOME, 80))
        assert result.validation_score == 100

    def test_no_prediction(self, make_match):
        assert validate_prediction(make_match()) is None


class TestWeights:
    def test_default_equal_shares(self):
        weights = default_weights()
        assert len(weights) == 3
        assert sum(w.weight for w in weights) == pytest.approx(1.0)
        assert compute_weights([])[0].weight == pytest.approx(1 / 3)

    def test_paused_algorithm_gets_floor(self):
        bad = [(70.0, False)] * 2 + [(70.0, True)] * 8 + [(70.0, False)] * 10
        good = [(55.0, True)] * 16 + [(55.0, False)] * 4
        weights = compute_weights([
            AlgorithmPerformance.from_results(ML, bad),
            AlgorithmPerformance.from_results(VPF, good),
        ])
        by_id = {w.algorithm_id: w for w in weights}
        assert by_id[ML].is_paused
        assert by_id[ML].weight == CALIBRATION_WEIGHT_BOUNDS[0]
        assert by_id[VPF].weight == CALIBRATION_WEIGHT_BOUNDS[1]


class TestConsensus:
    """Weighted vote across non-paused algorithms."""

    def test_two_to_one_vote(self):
        result = synthesize_consensus({
            ML: _pick(Side.HOME),
            VPF: _pick(Side.HOME),
            SE: _pick(Side.AWAY),
        })
        assert result.recommended == Side.HOME
        assert result.agreement == pytest.approx(2 / 3)
        # 60 * (0.85 + 0.15 * 2/3)
        assert result.confidence == 57
        assert not result.unanimous

    def test_tie_resolves_home(self):
        result = synthesize_consensus({ML: _pick(Side.AWAY), VPF: _pick(Side.HOME)})
        assert result.recommended == Side.HOME

    def test_all_paused_is_skip(self):
        result = synthesize_consensus({ML: _pick(Side.HOME, paused=True), SE: _pick(Side.AWAY, paused=True)})
        assert result.is_skip
        assert result.confidence == CONSENSUS_BOUNDS[0]
        assert result.skipped == [ML, SE]
        assert result.to_dict()["recommended"] == "skip"

    def test_paused_algorithm_is_left_out(self):
        result = synthesize_consensus({
            ML: _pick(Side.AWAY, 80, paused=True),
            VPF: _pick(Side.HOME, 70),
        })
        assert result.recommended == Side.HOME
        assert result.unanimous
        assert result.components == [VPF]
        assert result.confidence == 70

    def test_value_fields_need_every_component(self):
        result = synthesize_consensus({
            ML: _pick(Side.HOME, 60, expected_value=0.2, ev_percentage=20.0, true_probability=0.6),
            VPF: _pick(Side.HOME, 60),
        })
        assert result.expected_value is None
        assert result.true_probability == pytest.approx(0.6)

    def test_accepts_predicted_matches(self, make_match):
        match = annotate_match(make_match(), prediction=_pick(Side.AWAY, 65)).match
        result = synthesize_consensus({ML: match, VPF: make_match()})
        assert result.recommended == Side.AWAY
        assert result.components == [ML]
