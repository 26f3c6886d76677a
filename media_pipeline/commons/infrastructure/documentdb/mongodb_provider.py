"""MongoDB implementation of document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from media_pipeline.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DuplicateDocumentError,
)
from media_pipeline.commons.infrastructure.storage.base import HealthStatus


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. The domain ``id`` is stored as ``_id``.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        try:
            result = await self._db[collection].insert_one(_to_mongo(document))
        except DuplicateKeyError as e:
            raise DuplicateDocumentError(collection, str(e.details or e)) from e
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        doc = await self._db[collection].find_one({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(filters)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)

        return [_from_mongo(doc) async for doc in cursor]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        doc = await self._db[collection].find_one(filters)
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        conditions: dict[str, Any] | None = None,
    ) -> bool:
        """Update a document with ``$set``.

        ``id`` is never rewritten; the filter combines ``_id`` with any
        conditions so MongoDB applies the check and the write atomically.
        """
        update_doc = {k: v for k, v in updates.items() if k != "id"}
        filters: dict[str, Any] = {"_id": document_id, **(conditions or {})}
        result = await self._db[collection].update_one(filters, {"$set": update_doc})
        return bool(result.matched_count > 0)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        if filters:
            return int(await self._db[collection].count_documents(filters))
        return int(await self._db[collection].estimated_document_count())

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {"unique": unique}
        if name:
            kwargs["name"] = name
        index_name = await self._db[collection].create_index(fields, **kwargs)
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MongoDB is healthy",
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
