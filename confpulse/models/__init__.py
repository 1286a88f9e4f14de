"""ConfPulse data models."""
from confpulse.models.activity import Activity, ActivityType
from confpulse.models.badge import (
    BADGES,
    BADGES_BY_ID,
    Badge,
    BadgeProgress,
    BadgeRequirement,
    Leaderboard,
    LeaderboardEntry,
    RequirementType,
)
from confpulse.models.evaluation import (
    BonusDetail,
    Eligibility,
    Evaluation,
    EvaluationCard,
    EvaluationStatus,
    EvaluationSubmissionResult,
    EvaluationSummary,
    EvaluationType,
    EvaluationWindow,
    MicroEvaluation,
    MicroEvaluationResult,
    MicroEvaluationScore,
    Reason,
)
from confpulse.models.participant import (
    BadgeUnlock,
    Participant,
    PointsHistoryEntry,
    PointsReason,
)

__all__ = [
    "Activity",
    "ActivityType",
    "BADGES",
    "BADGES_BY_ID",
    "Badge",
    "BadgeProgress",
    "BadgeRequirement",
    "BadgeUnlock",
    "BonusDetail",
    "Eligibility",
    "Evaluation",
    "EvaluationCard",
    "EvaluationStatus",
    "EvaluationSubmissionResult",
    "EvaluationSummary",
    "EvaluationType",
    "EvaluationWindow",
    "Leaderboard",
    "LeaderboardEntry",
    "MicroEvaluation",
    "MicroEvaluationResult",
    "MicroEvaluationScore",
    "Participant",
    "PointsHistoryEntry",
    "PointsReason",
    "Reason",
    "RequirementType",
]
