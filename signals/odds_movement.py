"""
ODDS_MOVEMENT.PY - Smart-score odds-movement factor

Reads the first and last live quote on the picked side. Lengthening odds
mean growing value for the pick, shortening odds mean the market is moving
the other way. Reverse line movement toward the pick adds a large bonus.
MLB uses tighter movement bands and skips the RLM bonus.
"""

from typing import Optional

from core.sports import League
from match_schema import Match, Prediction, Side
from signals.factor import FactorScore
from signals.market import line_movement

RLM_BONUS = 20


def _general_movement(result: FactorScore, side: Side, delta: float) -> None:
    name = side.value.title()
    if delta <= -0.2:
        result.add(-15, f"{side.value}-odds-shortening-significant", 8,
                   f"{name} team odds shortening significantly (sharp money against our pick)")
    elif delta < 0:
        result.add(-5, f"{side.value}-odds-shortening", 4, f"{name} team odds shortening (value decreasing)")
    elif delta >= 0.2:
        result.add(15, f"{side.value}-odds-lengthening-significant", 8,
                   f"{name} team odds lengthening significantly (growing value)")
    elif delta > 0:
        result.add(5, f"{side.value}-odds-lengthening", 4, f"{name} team odds lengthening (value increasing)")


def _mlb_movement(result: FactorScore, side: Side, delta: float) -> None:
    name = side.value.title()
    if delta <= -0.15:
        result.add(-15, f"mlb-{side.value}-odds-shortening", 8,
                   f"{name} team odds shortening significantly (sharp MLB money against our pick)")
    elif delta <= -0.05:
        result.add(-7, f"mlb-{side.value}-odds-ticking-down", 5, f"{name} team odds moving against us slightly")
    elif delta >= 0.15:
        result.add(15, f"mlb-{side.value}-odds-lengthening", 8,
                   f"{name} team odds lengthening significantly (value increasing)")
    elif delta >= 0.05:
        result.add(7, f"mlb-{side.value}-odds-ticking-up", 5, f"{name} team odds improving slightly")


def calculate_odds_movement_score(match: Match, prediction: Optional[Prediction] = None) -> FactorScore:
    prediction = prediction or match.prediction
    result = FactorScore()
    movement = line_movement(match.odds.live_odds)
    if prediction is None or movement is None:
        return result

    side = prediction.recommended
    delta = movement.delta_for(side)

    if match.league is League.MLB:
        if delta is not None:
            _mlb_movement(result, side, delta)
        return result.clamped()

    if delta is not None:
        _general_movement(result, side, delta)

    rlm_side = movement.reverse_line_side
    if rlm_side is not None:
        bonus = RLM_BONUS if rlm_side == side else 0
        result.add(bonus, f"reverse-line-movement-{rlm_side.value}", 9,
                   f"Reverse line movement favoring {rlm_side.value} team (sharp indicator)")
    return result.clamped()
