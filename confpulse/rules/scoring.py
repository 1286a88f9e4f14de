"""
Point formulas for micro-evaluations and required-field checks for
day / final evaluations.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from confpulse.config import CONFIG
from confpulse.models.activity import Activity
from confpulse.models.evaluation import (
    BonusDetail,
    EvaluationType,
    MicroEvaluationScore,
)
from confpulse.utils.clock import as_utc

REQUIRED_FIELDS: dict[EvaluationType, list[str]] = {
    EvaluationType.DAY1: ["logistics_rating", "schedule_balanced"],
    EvaluationType.DAY2: ["logistics_rating", "schedule_balanced"],
    EvaluationType.FINAL: ["overall_rating", "most_impactful_thing", "network_feeling"],
}


def elapsed_minutes(now: datetime, end: datetime) -> float:
    """Minutes since ``end``; negative when the session has not ended yet."""
    return (as_utc(now) - as_utc(end)).total_seconds() / 60


def is_early_bird(activity: Activity, now: datetime) -> bool:
    end = activity.effective_end()
    if end is None:
        return False
    return elapsed_minutes(now, end) <= CONFIG.early_bird_window_minutes


def has_comment(responses: Mapping[str, Any]) -> bool:
    comment = responses.get(CONFIG.comment_field)
    return isinstance(comment, str) and len(comment.strip()) > 0


def score_micro_evaluation(
    activity: Activity, responses: Mapping[str, Any], now: datetime
) -> MicroEvaluationScore:
    points = CONFIG.points_micro_eval
    bonus_details: list[BonusDetail] = []

    if has_comment(responses):
        points += CONFIG.points_optional_comment
        bonus_details.append(BonusDetail(type="comment", points=CONFIG.points_optional_comment))

    early_bird = is_early_bird(activity, now)
    if early_bird:
        points += CONFIG.points_early_bird
        bonus_details.append(BonusDetail(type="early_bird", points=CONFIG.points_early_bird))

    return MicroEvaluationScore(
        points_earned=points,
        is_early_bird=early_bird,
        bonus_details=bonus_details,
    )


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def first_missing_field(
    evaluation_type: EvaluationType, responses: Mapping[str, Any]
) -> Optional[str]:
    for field in REQUIRED_FIELDS[EvaluationType(evaluation_type)]:
        if _is_missing(responses.get(field)):
            return field
    return None
