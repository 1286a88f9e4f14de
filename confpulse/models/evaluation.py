"""
Evaluation documents, evaluation windows and submission results.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from confpulse.models.badge import Badge
from confpulse.utils.clock import utcnow


class EvaluationType(str, Enum):
    DAY1 = "day1"
    DAY2 = "day2"
    FINAL = "final"


class Reason(str, Enum):
    OK = "ok"
    ERROR = "error"
    EVALUATION_CLOSED = "evaluation_closed"
    ALREADY_COMPLETED = "already_completed"
    REQUIRES_DAY1 = "requires_day1"
    REQUIRES_DAY1_AND_DAY2 = "requires_day1_and_day2"
    ALREADY_ANSWERED = "already_answered"
    ACTIVITY_NOT_FOUND = "activity_not_found"
    PARTICIPANT_NOT_FOUND = "participant_not_found"


MISSING_FIELD_PREFIX = "missing_required_field:"


def missing_field_reason(field: str) -> str:
    return f"{MISSING_FIELD_PREFIX}{field}"


# ────────────────────── Stored documents ────────────


class MicroEvaluation(BaseModel):
    """Pulse feedback for one activity. At most one per participant and activity."""
    participant_code: str
    participant_id: Optional[str] = None
    activity_id: str
    responses: Dict[str, Any] = Field(default_factory=dict)
    points_earned: int = 0
    is_early_bird: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Evaluation(BaseModel):
    """Day 1, day 2 or final evaluation. At most one per participant and type."""
    participant_code: str
    evaluation_type: EvaluationType
    responses: Dict[str, Any] = Field(default_factory=dict)
    points_earned: int = 0
    completed_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)


class EvaluationWindow(BaseModel):
    is_open: bool = False
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class EvaluationStatus(BaseModel):
    """Admin-controlled open/closed flags per evaluation type."""
    day1: EvaluationWindow = Field(default_factory=EvaluationWindow)
    day2: EvaluationWindow = Field(default_factory=EvaluationWindow)
    final: EvaluationWindow = Field(default_factory=EvaluationWindow)

    def window(self, evaluation_type: EvaluationType) -> EvaluationWindow:
        return getattr(self, EvaluationType(evaluation_type).value)

    def is_open(self, evaluation_type: EvaluationType) -> bool:
        return self.window(evaluation_type).is_open


# ────────────────────── Results ─────────────────────


class Eligibility(BaseModel):
    can_submit: bool
    reason: str = Reason.OK.value


class BonusDetail(BaseModel):
    type: str
    points: int


class MicroEvaluationScore(BaseModel):
    points_earned: int
    is_early_bird: bool
    bonus_details: List[BonusDetail] = Field(default_factory=list)


class MicroEvaluationResult(BaseModel):
    success: bool
    reason: str = Reason.OK.value
    points_earned: int = 0
    is_early_bird: bool = False
    bonus_details: List[BonusDetail] = Field(default_factory=list)
    unlocked_badges: List[Badge] = Field(default_factory=list)


class EvaluationSubmissionResult(BaseModel):
    success: bool
    reason: str = Reason.OK.value
    evaluation_id: Optional[str] = None
    points_earned: int = 0
    unlocked_badges: List[Badge] = Field(default_factory=list)


class EvaluationCard(BaseModel):
    is_completed: bool
    is_open: bool
    can_start: bool
    icon: str


class EvaluationSummary(BaseModel):
    day1: EvaluationCard
    day2: EvaluationCard
    final: EvaluationCard
    total_completed: int
    total_required: int = 3
    progress: int = Field(..., ge=0, le=100, description="percent")
