"""
Day / final evaluation gating.

The window check always runs first so a closed evaluation is reported as
closed even when sequencing would also block the participant.
"""
from __future__ import annotations

from typing import Iterable

from confpulse.exceptions import InvalidEvaluationTypeError
from confpulse.models.evaluation import (
    Eligibility,
    EvaluationStatus,
    EvaluationType,
    Reason,
)

PREREQUISITES: dict[EvaluationType, tuple[tuple[EvaluationType, ...], Reason]] = {
    EvaluationType.DAY1: ((), Reason.OK),
    EvaluationType.DAY2: ((EvaluationType.DAY1,), Reason.REQUIRES_DAY1),
    EvaluationType.FINAL: (
        (EvaluationType.DAY1, EvaluationType.DAY2),
        Reason.REQUIRES_DAY1_AND_DAY2,
    ),
}


def parse_evaluation_type(value) -> EvaluationType:
    try:
        return EvaluationType(value)
    except ValueError:
        raise InvalidEvaluationTypeError(f"Unknown evaluation type: {value!r}") from None


def check_eligibility(
    status: EvaluationStatus,
    completed: Iterable[str],
    evaluation_type: EvaluationType,
) -> Eligibility:
    evaluation_type = parse_evaluation_type(evaluation_type)
    done = {EvaluationType(c).value for c in completed}

    if not status.is_open(evaluation_type):
        return Eligibility(can_submit=False, reason=Reason.EVALUATION_CLOSED.value)

    if evaluation_type.value in done:
        return Eligibility(can_submit=False, reason=Reason.ALREADY_COMPLETED.value)

    required, reason = PREREQUISITES[evaluation_type]
    if any(r.value not in done for r in required):
        return Eligibility(can_submit=False, reason=reason.value)

    return Eligibility(can_submit=True, reason=Reason.OK.value)
