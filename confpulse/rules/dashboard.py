from __future__ import annotations

from typing import Iterable

from confpulse.models.evaluation import (
    EvaluationCard,
    EvaluationStatus,
    EvaluationSummary,
    EvaluationType,
)
from confpulse.rules.eligibility import PREREQUISITES

ICON_COMPLETED = "✅"
ICON_OPEN = "🔴"
ICON_LOCKED = "🔒"


def _card(
    evaluation_type: EvaluationType, status: EvaluationStatus, done: set[str]
) -> EvaluationCard:
    required, _ = PREREQUISITES[evaluation_type]
    is_completed = evaluation_type.value in done
    is_open = status.is_open(evaluation_type)
    can_start = all(r.value in done for r in required)

    if is_completed:
        icon = ICON_COMPLETED
    elif is_open and can_start:
        icon = ICON_OPEN
    else:
        icon = ICON_LOCKED

    return EvaluationCard(
        is_completed=is_completed, is_open=is_open, can_start=can_start, icon=icon
    )


def build_evaluation_summary(
    status: EvaluationStatus, completed: Iterable[str]
) -> EvaluationSummary:
    done = {EvaluationType(c).value for c in completed}
    total_required = len(EvaluationType)
    return EvaluationSummary(
        day1=_card(EvaluationType.DAY1, status, done),
        day2=_card(EvaluationType.DAY2, status, done),
        final=_card(EvaluationType.FINAL, status, done),
        total_completed=len(done),
        total_required=total_required,
        progress=round(len(done) / total_required * 100),
    )
