"""
Participant and points-ledger models.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from confpulse.utils.clock import utcnow


class PointsReason(str, Enum):
    MICRO_EVAL = "micro_eval"
    BADGE = "badge"
    DAY_EVAL = "day_eval"
    FINAL_EVAL = "final_eval"


class Participant(BaseModel):
    """Registered conference participant."""
    id: Optional[str] = Field(None, description="Store document id")
    code: str = Field(..., description="Login code, AF-XXXX")
    email: str = Field(..., description="Contact email")
    language: str = Field("fr", description="Preferred language: en|fr")
    name: str = Field("", description="Display name")
    institution: str = Field("", description="Home institution")
    total_points: int = Field(0, ge=0)
    badges: List[str] = Field(default_factory=list, description="Unlocked badge ids")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @field_validator("badges")
    @classmethod
    def _dedupe_badges(cls, v: List[str]) -> List[str]:
        seen: list[str] = []
        for badge_id in v:
            if badge_id not in seen:
                seen.append(badge_id)
        return seen

    def has_badge(self, badge_id: str) -> bool:
        return badge_id in self.badges

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})


class PointsHistoryEntry(BaseModel):
    """Append-only audit record of a single point award."""
    participant_code: str
    amount: int
    reason: PointsReason
    activity_id: Optional[str] = None
    badge_id: Optional[str] = None
    evaluation_type: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class BadgeUnlock(BaseModel):
    participant_code: str
    badge_id: str
    unlocked_at: datetime = Field(default_factory=utcnow)
