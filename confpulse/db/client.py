from __future__ import annotations

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient

from confpulse.config import CONFIG


def get_db_client(mongodb_uri: Optional[str] = None) -> AsyncIOMotorClient:
    """Mongo client with bounded timeouts so store calls fail instead of hanging."""
    return AsyncIOMotorClient(
        mongodb_uri or CONFIG.mongodb_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=CONFIG.server_selection_timeout_ms,
        socketTimeoutMS=CONFIG.socket_timeout_ms,
    )
