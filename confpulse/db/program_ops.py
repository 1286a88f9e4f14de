"""
Database operations for the conference program.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from confpulse.config import CONFIG
from confpulse.models.activity import Activity, ActivityType

_PROGRAM_ORDER = [("day", 1), ("start_time", 1)]


def _to_activity(doc: dict) -> Activity:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Activity(**doc)


class ProgramDatabase:
    """Read access to activities plus the organizer-side completion update."""

    def __init__(self, db_client: AsyncIOMotorClient, db_name: Optional[str] = None):
        self.db: AsyncIOMotorDatabase = db_client[db_name or CONFIG.db_name]
        self.collection = self.db["program"]

    async def create_indexes(self):
        await self.collection.create_index(_PROGRAM_ORDER)
        await self.collection.create_index("type")

    async def _find(self, query: dict) -> List[Activity]:
        cursor = self.collection.find(query).sort(_PROGRAM_ORDER)
        activities = []
        async for doc in cursor:
            activities.append(_to_activity(doc))
        return activities

    async def get(self, activity_id: str) -> Optional[Activity]:
        doc = await self.collection.find_one({"_id": activity_id})
        return _to_activity(doc) if doc else None

    async def list_all(self) -> List[Activity]:
        return await self._find({})

    async def list_by_day(self, day: int) -> List[Activity]:
        return await self._find({"day": day})

    async def list_by_type(self, activity_type: ActivityType) -> List[Activity]:
        return await self._find({"type": ActivityType(activity_type).value})

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def upsert(self, activity: Activity) -> None:
        doc = activity.model_dump(exclude={"id"})
        await self.collection.replace_one({"_id": activity.id}, doc, upsert=True)

    async def mark_completed(self, activity_id: str, actual_end: datetime) -> bool:
        result = await self.collection.update_one(
            {"_id": activity_id},
            {"$set": {"is_completed": True, "actual_end": actual_end}},
        )
        return result.matched_count > 0
