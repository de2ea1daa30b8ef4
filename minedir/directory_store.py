"""Async access to the directory collections."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

log = logging.getLogger(__name__)


class DirectoryStore:
    """Thin async wrapper over the directory collections.

    Documents are always returned in ascending ``_id`` order so that
    collision suffixes come out the same on every run.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def list_collection_names(self) -> List[str]:
        names = await self.db.list_collection_names()
        return sorted(names)

    async def count_documents(self, collection: str, query: Optional[Dict[str, Any]] = None) -> int:
        return await self.db[collection].count_documents(query or {})

    async def find_documents(
        self,
        collection: str,
        query: Optional[Dict[str, Any]] = None,
        *,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(query or {}).sort("_id", 1)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def distinct(self, collection: str, field: str) -> List[Any]:
        return await self.db[collection].distinct(field)

    async def update_identifier(self, collection: str, document_id: Any, field: str, value: str) -> bool:
        result = await self.db[collection].update_one({"_id": document_id}, {"$set": {field: value}})
        log.debug("%s: set %s=%r on %s (matched=%s)", collection, field, value, document_id, result.matched_count)
        return result.matched_count > 0

    async def duplicate_values(self, collection: str, field: str) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {field: {"$nin": [None, ""]}}},
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
            {"$match": {"count": {"$gt": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]
        rows = await self.db[collection].aggregate(pipeline).to_list(length=None)
        return [{"value": row["_id"], "count": row["count"]} for row in rows]
