"""
Badge catalog and leaderboard models.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RequirementType(str, Enum):
    MICRO_EVAL_COUNT = "micro_eval_count"
    EARLY_BIRD_COUNT = "early_bird_count"
    COMMENTS_COUNT = "comments_count"
    ALL_DONE = "all_done"
    LEADERBOARD_TOP_10_PERCENT = "leaderboard_top_10_percent"


class BadgeRequirement(BaseModel):
    type: RequirementType
    value: int = 1


class Badge(BaseModel):
    """Static, one-time unlockable achievement."""
    id: str
    name: Dict[str, str]
    description: Dict[str, str]
    icon: str
    requirement: BadgeRequirement
    bonus: int = Field(..., ge=0, description="Points granted on unlock")


BADGES: List[Badge] = [
    Badge(
        id="network_builder",
        name={"en": "Network Builder", "fr": "Bâtisseur de Réseau"},
        description={
            "en": "Complete 5 micro-evaluations",
            "fr": "Complétez 5 micro-évaluations",
        },
        icon="🥇",
        requirement=BadgeRequirement(type=RequirementType.MICRO_EVAL_COUNT, value=5),
        bonus=10,
    ),
    Badge(
        id="speed_thinker",
        name={"en": "Speed Thinker", "fr": "Penseur Rapide"},
        description={
            "en": "Reply 3 times as Early Bird (<10 min)",
            "fr": "Répondez 3 fois en Early Bird (<10 min)",
        },
        icon="🔥",
        requirement=BadgeRequirement(type=RequirementType.EARLY_BIRD_COUNT, value=3),
        bonus=15,
    ),
    Badge(
        id="insight_master",
        name={"en": "Insight Master", "fr": "Maître des Insights"},
        description={
            "en": "Write 5 optional comments",
            "fr": "Rédigez 5 commentaires optionnels",
        },
        icon="💎",
        requirement=BadgeRequirement(type=RequirementType.COMMENTS_COUNT, value=5),
        bonus=10,
    ),
    Badge(
        id="conference_champion",
        name={"en": "Conference Champion", "fr": "Champion de Conférence"},
        description={
            "en": "Complete all evaluations + final survey",
            "fr": "Complétez toutes les évaluations + enquête finale",
        },
        icon="👑",
        requirement=BadgeRequirement(type=RequirementType.ALL_DONE, value=1),
        bonus=30,
    ),
    Badge(
        id="afretec_ambassador",
        name={"en": "Afretec Ambassador", "fr": "Ambassadeur Afretec"},
        description={
            "en": "Reach Top 10% participants",
            "fr": "Atteignez le Top 10% des participants",
        },
        icon="🌍",
        requirement=BadgeRequirement(type=RequirementType.LEADERBOARD_TOP_10_PERCENT, value=1),
        bonus=50,
    ),
]

BADGES_BY_ID: Dict[str, Badge] = {badge.id: badge for badge in BADGES}


class BadgeProgress(BaseModel):
    current: int
    target: int
    unlocked: bool = False


class LeaderboardEntry(BaseModel):
    rank: int = Field(..., ge=1)
    code: str
    points: int
    name: str = ""
    badges: List[str] = Field(default_factory=list)


class Leaderboard(BaseModel):
    entries: List[LeaderboardEntry] = Field(default_factory=list)
    my_rank: Optional[int] = None
    total_participants: int = 0
