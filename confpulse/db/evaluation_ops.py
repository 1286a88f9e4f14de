"""
Database operations for micro-evaluations, day / final evaluations, the
evaluation-window config and the append-only points ledger.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from confpulse.config import CONFIG
from confpulse.models.evaluation import (
    Evaluation,
    EvaluationStatus,
    EvaluationType,
    MicroEvaluation,
)
from confpulse.models.participant import BadgeUnlock, PointsHistoryEntry

STATUS_DOC_ID = "evaluation_status"


class EvaluationDatabase:
    """Handles all evaluation-related database operations."""

    def __init__(self, db_client: AsyncIOMotorClient, db_name: Optional[str] = None):
        self.db: AsyncIOMotorDatabase = db_client[db_name or CONFIG.db_name]
        self.micro_collection = self.db["micro_evaluations"]
        self.evaluations_collection = self.db["evaluations"]
        self.config_collection = self.db["config"]
        self.history_collection = self.db["points_history"]
        self.badges_collection = self.db["participant_badges"]

    async def create_indexes(self):
        """Create indexes. The two unique indexes are what make submissions one-shot."""
        await self.micro_collection.create_index(
            [("participant_code", 1), ("activity_id", 1)], unique=True
        )
        await self.evaluations_collection.create_index(
            [("participant_code", 1), ("evaluation_type", 1)], unique=True
        )
        await self.evaluations_collection.create_index("evaluation_type")
        await self.history_collection.create_index([("participant_code", 1), ("created_at", 1)])
        await self.badges_collection.create_index("participant_code")

    # ============== Micro-evaluations ==============

    async def micro_evaluation_exists(self, participant_code: str, activity_id: str) -> bool:
        doc = await self.micro_collection.find_one(
            {"participant_code": participant_code, "activity_id": activity_id},
            projection={"_id": 1},
        )
        return doc is not None

    async def insert_micro_evaluation(self, micro: MicroEvaluation) -> bool:
        """Insert; False when the (participant, activity) pair already exists."""
        try:
            result = await self.micro_collection.insert_one(micro.model_dump())
        except DuplicateKeyError:
            logger.warning(
                f"Duplicate micro-evaluation attempt: {micro.participant_code} - {micro.activity_id}"
            )
            return False
        return result.inserted_id is not None

    async def list_micro_evaluations(self, participant_code: str) -> List[MicroEvaluation]:
        cursor = self.micro_collection.find({"participant_code": participant_code})
        micro_evaluations = []
        async for doc in cursor:
            doc.pop("_id", None)
            micro_evaluations.append(MicroEvaluation(**doc))
        return micro_evaluations

    # ============== Day / final evaluations ==============

    async def insert_evaluation(self, evaluation: Evaluation) -> Optional[str]:
        """Insert; None when this evaluation type is already completed."""
        try:
            result = await self.evaluations_collection.insert_one(evaluation.model_dump())
        except DuplicateKeyError:
            logger.warning(
                f"Duplicate evaluation attempt: {evaluation.participant_code} - "
                f"{evaluation.evaluation_type.value}"
            )
            return None
        return str(result.inserted_id)

    async def completed_evaluation_types(self, participant_code: str) -> List[str]:
        cursor = self.evaluations_collection.find(
            {"participant_code": participant_code},
            projection={"evaluation_type": 1},
        )
        return [doc["evaluation_type"] async for doc in cursor]

    async def list_evaluations_by_type(self, evaluation_type: EvaluationType) -> List[Dict[str, Any]]:
        cursor = self.evaluations_collection.find(
            {"evaluation_type": EvaluationType(evaluation_type).value}
        ).sort("completed_at", 1)
        responses = []
        async for doc in cursor:
            doc["id"] = str(doc.pop("_id"))
            responses.append(doc)
        return responses

    # ============== Evaluation windows ==============

    async def get_status(self) -> EvaluationStatus:
        """Current windows; creates the all-closed default document when missing."""
        doc = await self.config_collection.find_one({"_id": STATUS_DOC_ID})
        if doc is None:
            default = EvaluationStatus()
            await self.config_collection.update_one(
                {"_id": STATUS_DOC_ID},
                {"$setOnInsert": default.model_dump()},
                upsert=True,
            )
            return default
        doc.pop("_id", None)
        return EvaluationStatus.model_validate(doc)

    async def set_window(self, evaluation_type: EvaluationType, is_open: bool, at: datetime) -> None:
        key = EvaluationType(evaluation_type).value
        stamp_field = "opened_at" if is_open else "closed_at"
        await self.config_collection.update_one(
            {"_id": STATUS_DOC_ID},
            {
                "$set": {
                    f"{key}.is_open": is_open,
                    f"{key}.{stamp_field}": at,
                    "updated_at": at,
                }
            },
            upsert=True,
        )

    # ============== Points ledger ==============

    async def append_points_history(self, entry: PointsHistoryEntry) -> None:
        await self.history_collection.insert_one(entry.model_dump())

    async def list_points_history(self, participant_code: str) -> List[PointsHistoryEntry]:
        cursor = self.history_collection.find({"participant_code": participant_code}).sort("created_at", 1)
        entries = []
        async for doc in cursor:
            doc.pop("_id", None)
            entries.append(PointsHistoryEntry(**doc))
        return entries

    async def record_badge_unlock(self, unlock: BadgeUnlock) -> None:
        await self.badges_collection.insert_one(unlock.model_dump())
