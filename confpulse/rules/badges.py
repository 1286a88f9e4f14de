"""
Badge predicates.

Statistics are always rebuilt from the full micro-evaluation history of the
participant; nothing here keeps running counters.
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from pydantic import BaseModel

from confpulse.models.badge import (
    BADGES,
    Badge,
    BadgeProgress,
    RequirementType,
)
from confpulse.models.evaluation import MicroEvaluation
from confpulse.models.participant import Participant
from confpulse.rules.scoring import has_comment


class ParticipantStats(BaseModel):
    micro_eval_count: int = 0
    early_bird_count: int = 0
    comments_count: int = 0
    total_activities: int = 0
    has_final_evaluation: bool = False

    @property
    def all_done(self) -> bool:
        return (
            self.micro_eval_count >= self.total_activities
            and self.has_final_evaluation
        )


def aggregate_stats(
    micro_evaluations: Iterable[MicroEvaluation],
    total_activities: int,
    has_final_evaluation: bool,
) -> ParticipantStats:
    stats = ParticipantStats(
        total_activities=total_activities,
        has_final_evaluation=has_final_evaluation,
    )
    for micro in micro_evaluations:
        stats.micro_eval_count += 1
        if micro.is_early_bird:
            stats.early_bird_count += 1
        if has_comment(micro.responses):
            stats.comments_count += 1
    return stats


def requirement_met(badge: Badge, stats: ParticipantStats) -> Optional[bool]:
    """Evaluate a statistics-based requirement.

    Returns ``None`` for the leaderboard requirement, which needs a fresh
    ranking and is decided by the caller.
    """
    req = badge.requirement
    if req.type == RequirementType.MICRO_EVAL_COUNT:
        return stats.micro_eval_count >= req.value
    if req.type == RequirementType.EARLY_BIRD_COUNT:
        return stats.early_bird_count >= req.value
    if req.type == RequirementType.COMMENTS_COUNT:
        return stats.comments_count >= req.value
    if req.type == RequirementType.ALL_DONE:
        return stats.all_done
    return None


def pending_badges(participant: Participant) -> list[Badge]:
    """Catalog badges the participant does not hold yet, in catalog order."""
    return [badge for badge in BADGES if not participant.has_badge(badge.id)]


def badge_progress(
    participant: Participant,
    stats: ParticipantStats,
    rank: int = 0,
    ambassador_threshold: int = 0,
) -> Dict[str, BadgeProgress]:
    current_by_type = {
        RequirementType.MICRO_EVAL_COUNT: stats.micro_eval_count,
        RequirementType.EARLY_BIRD_COUNT: stats.early_bird_count,
        RequirementType.COMMENTS_COUNT: stats.comments_count,
    }
    progress: Dict[str, BadgeProgress] = {}
    for badge in BADGES:
        req = badge.requirement
        unlocked = participant.has_badge(badge.id)
        if req.type in current_by_type:
            progress[badge.id] = BadgeProgress(
                current=current_by_type[req.type], target=req.value, unlocked=unlocked
            )
        elif req.type == RequirementType.ALL_DONE:
            progress[badge.id] = BadgeProgress(
                current=stats.micro_eval_count,
                target=stats.total_activities,
                unlocked=unlocked,
            )
        else:
            progress[badge.id] = BadgeProgress(
                current=rank, target=ambassador_threshold, unlocked=unlocked
            )
    return progress
