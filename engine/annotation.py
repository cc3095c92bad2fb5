"""
ANNOTATION.PY - Non-destructive match annotation

Engines never mutate the Match they are given. They build a new record with
the prediction / smart_score / algorithm_validation fields set, and share
every nested input record (teams, odds) with the source. Sharing is safe
because every schema model is frozen.

Usage:
    result = (
        MatchAnnotator(match)
        .with_prediction(prediction)
        .with_smart_score(score)
        .build()
    )
    result.match        # new annotated Match
    result.source       # the untouched input
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from match_schema import AlgorithmValidation, Match, Prediction, SmartScore


@dataclass(frozen=True)
class AnnotatedMatch:
    match: Match
    source: Match
    annotated_fields: Tuple[str, ...]

    @property
    def prediction(self) -> Optional[Prediction]:
        return self.match.prediction

    @property
    def smart_score(self) -> Optional[SmartScore]:
        return self.match.smart_score


class MatchAnnotator:
    """Collects annotations, then builds one new Match."""

    def __init__(self, match: Match):
        self._source = match
        self._updates: Dict[str, Any] = {}

    def with_prediction(self, prediction: Prediction) -> "MatchAnnotator":
        self._updates["prediction"] = prediction
        return self

    def with_smart_score(self, smart_score: SmartScore) -> "MatchAnnotator":
        self._updates["smart_score"] = smart_score
        return self

    def with_validation(self, validation: AlgorithmValidation) -> "MatchAnnotator":
        self._updates["algorithm_validation"] = validation
        return self

    def build(self) -> AnnotatedMatch:
        annotated = self._source.model_copy(update=dict(self._updates))
        return AnnotatedMatch(
            match=annotated,
            source=self._source,
            annotated_fields=tuple(sorted(self._updates)),
        )


def annotate_match(
    match: Match,
    prediction: Optional[Prediction] = None,
    smart_score: Optional[SmartScore] = None,
    algorithm_validation: Optional[AlgorithmValidation] = None,
) -> AnnotatedMatch:
    annotator = MatchAnnotator(match)
    if prediction is not None:
        annotator.with_prediction(prediction)
    if smart_score is not None:
        annotator.with_smart_score(smart_score)
    if algorithm_validation is not None:
        annotator.with_validation(algorithm_validation)
    return annotator.build()
