"""
Database operations for participants.

Points and badges are only ever changed with ``$inc`` / ``$addToSet`` so that
concurrent submissions never overwrite each other.
"""
from __future__ import annotations

from typing import List, Optional

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from confpulse.config import CONFIG
from confpulse.exceptions import CodeAlreadyExistsError
from confpulse.models.participant import Participant
from confpulse.utils.clock import utcnow


def _to_participant(doc: dict) -> Participant:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Participant(**doc)


def _object_id(participant_id: str) -> Optional[ObjectId]:
    return ObjectId(participant_id) if ObjectId.is_valid(participant_id) else None


class ParticipantDatabase:
    """Handles all participant-related database operations."""

    def __init__(self, db_client: AsyncIOMotorClient, db_name: Optional[str] = None):
        self.db: AsyncIOMotorDatabase = db_client[db_name or CONFIG.db_name]
        self.collection = self.db["participants"]

    async def create_indexes(self):
        await self.collection.create_index("code", unique=True)
        await self.collection.create_index("total_points")

    async def create(self, participant: Participant) -> Participant:
        """Insert a participant; the unique index on ``code`` rejects collisions."""
        try:
            result = await self.collection.insert_one(participant.to_document())
        except DuplicateKeyError:
            logger.warning(f"Participant code already registered: {participant.code}")
            raise CodeAlreadyExistsError(f"Code already exists: {participant.code}") from None
        return participant.model_copy(update={"id": str(result.inserted_id)})

    async def get_by_code(self, code: str) -> Optional[Participant]:
        doc = await self.collection.find_one({"code": code})
        return _to_participant(doc) if doc else None

    async def get_by_id(self, participant_id: str) -> Optional[Participant]:
        oid = _object_id(participant_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return _to_participant(doc) if doc else None

    async def increment_points(self, participant_id: str, delta: int) -> bool:
        result = await self.collection.update_one(
            {"_id": _object_id(participant_id)},
            {"$inc": {"total_points": delta}, "$set": {"updated_at": utcnow()}},
        )
        return result.modified_count > 0

    async def unlock_badge(self, participant_id: str, badge_id: str, bonus: int) -> bool:
        """Add ``badge_id`` and its bonus in one update, only if not already held.

        Returns True only for the call that actually unlocked the badge.
        """
        result = await self.collection.update_one(
            {"_id": _object_id(participant_id), "badges": {"$ne": badge_id}},
            {
                "$addToSet": {"badges": badge_id},
                "$inc": {"total_points": bonus},
                "$set": {"updated_at": utcnow()},
            },
        )
        return result.modified_count > 0

    async def list_all(self) -> List[Participant]:
        """All participants in registration order."""
        cursor = self.collection.find({}).sort("_id", 1)
        participants = []
        async for doc in cursor:
            participants.append(_to_participant(doc))
        return participants

    async def count(self) -> int:
        return await self.collection.count_documents({})
