from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from confpulse.config import CONFIG
from confpulse.db.evaluation_ops import EvaluationDatabase
from confpulse.db.participant_ops import ParticipantDatabase
from confpulse.db.program_ops import ProgramDatabase
from confpulse.exceptions import (
    CodeAlreadyExistsError,
    InvalidCodeError,
    InvalidEmailError,
    InvalidLimitError,
    InvalidResponsesError,
)
from confpulse.models.activity import Activity, ActivityType
from confpulse.models.badge import (
    BADGES,
    Badge,
    BadgeProgress,
    Leaderboard,
    RequirementType,
)
from confpulse.models.evaluation import (
    Eligibility,
    Evaluation,
    EvaluationStatus,
    EvaluationSubmissionResult,
    EvaluationSummary,
    EvaluationType,
    MicroEvaluation,
    MicroEvaluationResult,
    Reason,
    missing_field_reason,
)
from confpulse.models.participant import (
    BadgeUnlock,
    Participant,
    PointsHistoryEntry,
    PointsReason,
)
from confpulse.rules.badges import (
    ParticipantStats,
    aggregate_stats,
    badge_progress,
    pending_badges,
    requirement_met,
)
from confpulse.rules.dashboard import build_evaluation_summary
from confpulse.rules.eligibility import check_eligibility, parse_evaluation_type
from confpulse.rules.leaderboard import (
    is_in_top_fraction,
    rank_of,
    rank_participants,
    top_fraction_threshold,
)
from confpulse.rules.scoring import first_missing_field, score_micro_evaluation
from confpulse.utils.clock import Clock, utcnow
from confpulse.utils.codes import generate_code, is_valid_code, is_valid_email


def _require_code(participant_code: str) -> None:
    if not is_valid_code(participant_code):
        raise InvalidCodeError(f"Invalid code format: {participant_code!r}")


def _require_responses(responses: Any) -> None:
    if not isinstance(responses, Mapping):
        raise InvalidResponsesError("Invalid responses format")


class ConferenceCompanion:
    """Points-and-eligibility engine over the participant, program and evaluation stores.

    Holds no state between calls besides store handles and the clock: every
    decision is made from a fresh read.
    """

    __slots__ = ("_participants", "_program", "_evaluations", "_clock")

    # ─────────────────── Init ────────────────────
    def __init__(
        self,
        participants: ParticipantDatabase,
        program: ProgramDatabase,
        evaluations: EvaluationDatabase,
        clock: Clock = utcnow,
    ) -> None:
        self._participants = participants
        self._program = program
        self._evaluations = evaluations
        self._clock = clock

    @classmethod
    def from_client(
        cls, db_client: AsyncIOMotorClient, db_name: Optional[str] = None, clock: Clock = utcnow
    ) -> "ConferenceCompanion":
        return cls(
            ParticipantDatabase(db_client, db_name),
            ProgramDatabase(db_client, db_name),
            EvaluationDatabase(db_client, db_name),
            clock=clock,
        )

    async def ensure_indexes(self) -> None:
        await self._participants.create_indexes()
        await self._program.create_indexes()
        await self._evaluations.create_indexes()

    # ─────────────────── Participants ────────────
    async def register_participant(
        self,
        email: str,
        language: Optional[str] = None,
        name: str = "",
        institution: str = "",
        code: Optional[str] = None,
    ) -> Participant:
        """Register a participant, generating an AF-XXXX code unless one is given."""
        if not is_valid_email(email):
            raise InvalidEmailError("Invalid email format")
        if code is not None:
            _require_code(code)

        def _build(candidate: str) -> Participant:
            return Participant(
                code=candidate,
                email=email,
                language=language or CONFIG.default_language,
                name=name or "",
                institution=institution or "",
                created_at=self._clock(),
            )

        if code is not None:
            participant = await self._participants.create(_build(code))
        else:
            participant = None
            for attempt in range(CONFIG.code_generation_attempts):
                try:
                    participant = await self._participants.create(_build(generate_code()))
                    break
                except CodeAlreadyExistsError:
                    logger.debug(f"Generated code collided (attempt {attempt + 1})")
            if participant is None:
                raise CodeAlreadyExistsError("Could not generate a free participant code")

        logger.info(f"✅ Participant created: {participant.code}")
        return participant

    async def login(self, participant_code: str) -> Optional[Participant]:
        _require_code(participant_code)
        return await self._participants.get_by_code(participant_code)

    # ─────────────────── Program ─────────────────
    async def get_program(
        self, day: Optional[int] = None, activity_type: Optional[ActivityType] = None
    ) -> List[Activity]:
        if day is None:
            if activity_type is not None:
                return await self._program.list_by_type(activity_type)
            return await self._program.list_all()
        activities = await self._program.list_by_day(day)
        if activity_type is not None:
            activities = [a for a in activities if a.type == ActivityType(activity_type)]
        return activities

    async def get_main_activities(self) -> List[Activity]:
        return [a for a in await self._program.list_all() if a.type != ActivityType.BREAK]

    # ─────────────────── Eligibility ─────────────
    async def get_evaluation_status(self) -> EvaluationStatus:
        return await self._evaluations.get_status()

    async def get_completed_evaluations(self, participant_code: str) -> List[str]:
        return await self._evaluations.completed_evaluation_types(participant_code)

    async def _eligibility(self, participant_code: str, evaluation_type: EvaluationType) -> Eligibility:
        status = await self._evaluations.get_status()
        completed = await self._evaluations.completed_evaluation_types(participant_code)
        return check_eligibility(status, completed, evaluation_type)

    async def can_submit(self, participant_code: str, evaluation_type: str) -> Eligibility:
        """Whether the participant may submit this day / final evaluation now.

        Store failures are reported as reason ``error`` instead of raising.
        """
        _require_code(participant_code)
        evaluation_type = parse_evaluation_type(evaluation_type)
        try:
            return await self._eligibility(participant_code, evaluation_type)
        except Exception as e:
            logger.error(f"Error checking submission eligibility for {participant_code}: {e}")
            return Eligibility(can_submit=False, reason=Reason.ERROR.value)

    # ─────────────────── Micro-evaluations ───────
    async def has_answered(self, participant_code: str, activity_id: str) -> bool:
        _require_code(participant_code)
        return await self._evaluations.micro_evaluation_exists(participant_code, activity_id)

    async def submit_micro_evaluation(
        self,
        participant_code: str,
        participant_id: Optional[str],
        activity_id: str,
        responses: Mapping[str, Any],
    ) -> MicroEvaluationResult:
        _require_code(participant_code)
        _require_responses(responses)
        if not activity_id:
            raise InvalidResponsesError("activity_id is required")

        if await self._evaluations.micro_evaluation_exists(participant_code, activity_id):
            logger.warning(f"Already answered: {participant_code} - {activity_id}")
            return MicroEvaluationResult(success=False, reason=Reason.ALREADY_ANSWERED.value)

        activity = await self._program.get(activity_id)
        if activity is None:
            logger.warning(f"Activity not found: {activity_id} from {participant_code}")
            return MicroEvaluationResult(success=False, reason=Reason.ACTIVITY_NOT_FOUND.value)

        participant = await self._resolve_participant(participant_code, participant_id)
        if participant is None:
            logger.warning(f"Micro-evaluation from unknown participant: {participant_code}")
            return MicroEvaluationResult(success=False, reason=Reason.PARTICIPANT_NOT_FOUND.value)

        now = self._clock()
        score = score_micro_evaluation(activity, responses, now)
        micro = MicroEvaluation(
            participant_code=participant_code,
            participant_id=participant_id,
            activity_id=activity_id,
            responses=dict(responses),
            points_earned=score.points_earned,
            is_early_bird=score.is_early_bird,
            created_at=now,
        )

        # Every side effect below happens only after the unique insert wins.
        if not await self._evaluations.insert_micro_evaluation(micro):
            return MicroEvaluationResult(success=False, reason=Reason.ALREADY_ANSWERED.value)

        await self._participants.increment_points(participant.id, score.points_earned)
        await self._evaluations.append_points_history(
            PointsHistoryEntry(
                participant_code=participant_code,
                amount=score.points_earned,
                reason=PointsReason.MICRO_EVAL,
                activity_id=activity_id,
                created_at=now,
            )
        )
        logger.info(
            f"Micro-evaluation stored: {participant_code} - {activity_id} "
            f"(+{score.points_earned}, early_bird={score.is_early_bird})"
        )

        participant.total_points += score.points_earned
        unlocked = await self.check_and_unlock_badges(participant)

        return MicroEvaluationResult(
            success=True,
            points_earned=score.points_earned,
            is_early_bird=score.is_early_bird,
            bonus_details=score.bonus_details,
            unlocked_badges=unlocked,
        )

    async def _resolve_participant(
        self, participant_code: str, participant_id: Optional[str]
    ) -> Optional[Participant]:
        participant = None
        if participant_id:
            participant = await self._participants.get_by_id(participant_id)
        if participant is None or participant.code != participant_code:
            participant = await self._participants.get_by_code(participant_code)
        return participant

    # ─────────────────── Day / final evaluations ─
    async def submit_evaluation(
        self, participant_code: str, evaluation_type: str, responses: Mapping[str, Any]
    ) -> EvaluationSubmissionResult:
        _require_code(participant_code)
        evaluation_type = parse_evaluation_type(evaluation_type)
        _require_responses(responses)

        eligibility = await self._eligibility(participant_code, evaluation_type)
        if not eligibility.can_submit:
            logger.warning(f"Cannot submit {evaluation_type.value} for {participant_code}: {eligibility.reason}")
            return EvaluationSubmissionResult(success=False, reason=eligibility.reason)

        missing = first_missing_field(evaluation_type, responses)
        if missing is not None:
            return EvaluationSubmissionResult(success=False, reason=missing_field_reason(missing))

        participant = await self._participants.get_by_code(participant_code)
        if participant is None:
            logger.warning(f"Evaluation from unknown participant: {participant_code}")
            return EvaluationSubmissionResult(success=False, reason=Reason.PARTICIPANT_NOT_FOUND.value)

        now = self._clock()
        points = CONFIG.evaluation_points(evaluation_type.value)
        evaluation_id = await self._evaluations.insert_evaluation(
            Evaluation(
                participant_code=participant_code,
                evaluation_type=evaluation_type,
                responses=dict(responses),
                points_earned=points,
                completed_at=now,
                created_at=now,
            )
        )
        if evaluation_id is None:
            return EvaluationSubmissionResult(success=False, reason=Reason.ALREADY_COMPLETED.value)

        logger.info(f"✅ {evaluation_type.value} evaluation submitted: {evaluation_id}")

        if points > 0:
            await self._participants.increment_points(participant.id, points)
            participant.total_points += points
            reason = (
                PointsReason.FINAL_EVAL
                if evaluation_type == EvaluationType.FINAL
                else PointsReason.DAY_EVAL
            )
            await self._evaluations.append_points_history(
                PointsHistoryEntry(
                    participant_code=participant_code,
                    amount=points,
                    reason=reason,
                    evaluation_type=evaluation_type.value,
                    created_at=now,
                )
            )

        unlocked = await self.check_and_unlock_badges(participant)

        return EvaluationSubmissionResult(
            success=True,
            evaluation_id=evaluation_id,
            points_earned=points,
            unlocked_badges=unlocked,
        )

    # ─────────────────── Badges ──────────────────
    async def _participant_stats(self, participant_code: str) -> ParticipantStats:
        micro_evaluations = await self._evaluations.list_micro_evaluations(participant_code)
        completed = await self._evaluations.completed_evaluation_types(participant_code)
        total_activities = await self._program.count()
        return aggregate_stats(
            micro_evaluations,
            total_activities=total_activities,
            has_final_evaluation=EvaluationType.FINAL.value in completed,
        )

    async def _ranking(self, participant_code: str) -> tuple[int, int]:
        """(rank, total participants) from a fresh listing."""
        entries = rank_participants(await self._participants.list_all())
        return rank_of(entries, participant_code), len(entries)

    async def check_and_unlock_badges(self, participant: Participant) -> List[Badge]:
        """Unlock every catalog badge whose requirement now holds.

        Returns the badges unlocked by this call, in catalog order. A badge
        already held, or unlocked concurrently by another call, is skipped.
        """
        pending = pending_badges(participant)
        if not pending:
            return []

        stats = await self._participant_stats(participant.code)
        unlocked: List[Badge] = []
        for badge in pending:
            met = requirement_met(badge, stats)
            if met is None and badge.requirement.type == RequirementType.LEADERBOARD_TOP_10_PERCENT:
                rank, total = await self._ranking(participant.code)
                met = is_in_top_fraction(rank, total, CONFIG.ambassador_top_fraction)
            if not met:
                continue
            if await self._unlock(participant, badge):
                unlocked.append(badge)
        return unlocked

    async def _unlock(self, participant: Participant, badge: Badge) -> bool:
        if not await self._participants.unlock_badge(participant.id, badge.id, badge.bonus):
            return False

        now = self._clock()
        await self._evaluations.record_badge_unlock(
            BadgeUnlock(participant_code=participant.code, badge_id=badge.id, unlocked_at=now)
        )
        await self._evaluations.append_points_history(
            PointsHistoryEntry(
                participant_code=participant.code,
                amount=badge.bonus,
                reason=PointsReason.BADGE,
                badge_id=badge.id,
                created_at=now,
            )
        )
        participant.badges.append(badge.id)
        participant.total_points += badge.bonus
        logger.info(f"{badge.icon} Badge unlocked: {participant.code} - {badge.id} (+{badge.bonus})")
        return True

    async def get_badge_progress(self, participant: Participant) -> Dict[str, BadgeProgress]:
        stats = await self._participant_stats(participant.code)
        rank, total = await self._ranking(participant.code)
        return badge_progress(
            participant,
            stats,
            rank=rank,
            ambassador_threshold=top_fraction_threshold(total, CONFIG.ambassador_top_fraction),
        )

    @staticmethod
    def badge_catalog() -> List[Badge]:
        return list(BADGES)

    # ─────────────────── Leaderboard ─────────────
    async def get_leaderboard(
        self, limit: Optional[int] = None, participant_code: Optional[str] = None
    ) -> Leaderboard:
        limit = CONFIG.leaderboard_limit if limit is None else limit
        if limit < 1:
            raise InvalidLimitError(f"Leaderboard limit must be positive, got {limit}")
        entries = rank_participants(await self._participants.list_all())
        my_rank = rank_of(entries, participant_code) if participant_code else 0
        return Leaderboard(
            entries=entries[:limit],
            my_rank=my_rank or None,
            total_participants=len(entries),
        )

    # ─────────────────── Dashboard ───────────────
    async def get_evaluation_summary(self, participant_code: str) -> Optional[EvaluationSummary]:
        _require_code(participant_code)
        try:
            status = await self._evaluations.get_status()
            completed = await self._evaluations.completed_evaluation_types(participant_code)
        except Exception as e:
            logger.error(f"Error getting evaluation summary for {participant_code}: {e}")
            return None
        return build_evaluation_summary(status, completed)

    async def get_points_history(self, participant_code: str) -> List[PointsHistoryEntry]:
        _require_code(participant_code)
        return await self._evaluations.list_points_history(participant_code)

    # ─────────────────── Admin ───────────────────
    async def open_evaluation(self, evaluation_type: str) -> None:
        evaluation_type = parse_evaluation_type(evaluation_type)
        await self._evaluations.set_window(evaluation_type, True, self._clock())
        logger.info(f"✅ {evaluation_type.value} evaluation opened")

    async def close_evaluation(self, evaluation_type: str) -> None:
        evaluation_type = parse_evaluation_type(evaluation_type)
        await self._evaluations.set_window(evaluation_type, False, self._clock())
        logger.info(f"✅ {evaluation_type.value} evaluation closed")

    async def get_evaluation_stats(self, evaluation_type: str) -> Dict[str, Any]:
        evaluation_type = parse_evaluation_type(evaluation_type)
        responses = await self._evaluations.list_evaluations_by_type(evaluation_type)
        return {"total_responses": len(responses), "responses": responses}

    async def load_program(self, activities: Iterable[Activity]) -> int:
        count = 0
        for activity in activities:
            await self._program.upsert(activity)
            count += 1
        logger.info(f"Program loaded: {count} activities")
        return count

    async def end_activity(self, activity_id: str) -> bool:
        """Organizer action: record the real end time that early-bird timing uses."""
        ended = await self._program.mark_completed(activity_id, self._clock())
        if ended:
            logger.info(f"Activity ended: {activity_id}")
        else:
            logger.warning(f"Activity not found: {activity_id}")
        return ended
