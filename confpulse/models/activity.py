"""
Conference program activities.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ActivityType(str, Enum):
    PLENARY = "plenary"
    PANEL = "panel"
    WORKSHOP = "workshop"
    BREAK = "break"


class Activity(BaseModel):
    """A scheduled session of the program."""
    id: str = Field(..., description="Activity identifier")
    type: ActivityType = Field(ActivityType.PLENARY)
    day: int = Field(..., ge=1, le=3, description="Conference day")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    actual_end: Optional[datetime] = Field(None, description="Set by organizers when the session really ends")
    title: Dict[str, str] = Field(default_factory=dict, description="Localized title")
    description: Dict[str, str] = Field(default_factory=dict, description="Localized description")
    speakers: List[str] = Field(default_factory=list)
    is_completed: bool = False

    def effective_end(self) -> Optional[datetime]:
        """Actual end if organizers recorded one, else the scheduled end."""
        return self.actual_end or self.scheduled_end or self.end_time

    def display_title(self, language: str = "fr") -> str:
        return self.title.get(language) or self.title.get("en", "")
