"""
validators/prediction_validator.py - Prediction Bias Checks

Flags picks whose confidence is not supported by the season records:

- home bias:     picking home at > 60 while the away win rate is > 0.15 better  (-15)
- favorite bias: confidence > 75 while the win rates differ by < 0.1            (-10)
- mismatch:      home pick with confidence below 50                             (-5)

The validation score starts at 100 and is clamped to [0, 100]. Teams without
a usable record skip the record-based checks.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.invariants import clamp
from engine.team_strength import record_win_pct
from match_schema import Match, Prediction, Side

logger = logging.getLogger(__name__)

HOME_BIAS_GAP = 0.15
HOME_BIAS_CONFIDENCE = 60
HOME_BIAS_PENALTY = 15

FAVORITE_BIAS_GAP = 0.1
FAVORITE_BIAS_CONFIDENCE = 75
FAVORITE_BIAS_PENALTY = 10

MISMATCH_PENALTY = 5


@dataclass
class PredictionValidation:
    bias_detected: bool = False
    bias_type: Optional[str] = None
    validation_score: float = 100.0
    notes: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "bias_detected": self.bias_detected,
            "bias_type": self.bias_type,
            "validation_score": self.validation_score,
            "notes": self.notes,
        }


def detect_home_bias(match: Match, prediction: Prediction) -> bool:
    if prediction.recommended != Side.HOME or prediction.confidence <= HOME_BIAS_CONFIDENCE:
        return False
    home, away = record_win_pct(match.home_team.record), record_win_pct(match.away_team.record)
    if home is None or away is None:
        return False
    return away - home > HOME_BIAS_GAP


def detect_favorite_bias(match: Match, prediction: Prediction) -> bool:
    if prediction.confidence <= FAVORITE_BIAS_CONFIDENCE:
        return False
    home, away = record_win_pct(match.home_team.record), record_win_pct(match.away_team.record)
    if home is None or away is None:
        return False
    return abs(home - away) < FAVORITE_BIAS_GAP


def validate_prediction(match: Match, prediction: Optional[Prediction] = None) -> Optional[PredictionValidation]:
    """Bias checks for prediction (defaults to match.prediction). None when there is no pick."""
    prediction = prediction or match.prediction
    if prediction is None:
        return None

    result = PredictionValidation()
    if detect_home_bias(match, prediction):
        result.bias_detected = True
        result.bias_type = "home-team"
        result.validation_score -= HOME_BIAS_PENALTY
        result.notes.append("Possible home team bias detected")

    if detect_favorite_bias(match, prediction):
        result.bias_detected = True
        result.bias_type = "favorite-team"
        result.validation_score -= FAVORITE_BIAS_PENALTY
        result.notes.append("Possible favorite team bias detected")

    if prediction.recommended == Side.HOME and prediction.confidence < 50:
        result.validation_score -= MISMATCH_PENALTY
        result.notes.append("Recommendation/confidence mismatch")

    result.validation_score = clamp(result.validation_score, 0, 100)
    if result.bias_detected:
        logger.info("Bias check on %s: %s (score %.0f)", match.id, result.bias_type, result.validation_score)
    return result
