"""MongoDB implementation of document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.domain.exceptions import DocumentStoreError


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Use the domain model 'id' as MongoDB's '_id'."""
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Restore 'id' from '_id' for domain model compatibility."""
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations.
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
            connection_string
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document."""
        try:
            result = await self._db[collection].insert_one(_to_mongo(document))
        except PyMongoError as e:
            raise DocumentStoreError(
                collection, str(document.get("id", "<new>")), str(e)
            ) from e
        return str(result.inserted_id)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""
        try:
            doc = await self._db[collection].find_one({"_id": document_id})
        except PyMongoError as e:
            raise DocumentStoreError(collection, document_id, str(e)) from e
        return _from_mongo(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters."""
        cursor = self._db[collection].find(filters)

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)

        try:
            return [_from_mongo(doc) async for doc in cursor]
        except PyMongoError as e:
            raise DocumentStoreError(collection, "<query>", str(e)) from e

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Merge fields into a document with ``$set``."""
        update_doc = {k: v for k, v in updates.items() if k != "id"}
        try:
            result = await self._db[collection].update_one(
                {"_id": document_id},
                {"$set": update_doc},
            )
        except PyMongoError as e:
            raise DocumentStoreError(collection, document_id, str(e)) from e
        return bool(result.matched_count > 0)

    async def update_if(
        self,
        collection: str,
        document_id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Merge fields only if the document still matches ``expected``.

        The filter ``{field: None}`` matches documents where the field is
        missing, so a first write against a legacy document works.
        """
        update_doc = {k: v for k, v in updates.items() if k != "id"}
        try:
            result = await self._db[collection].update_one(
                {"_id": document_id, **expected},
                {"$set": update_doc},
            )
        except PyMongoError as e:
            raise DocumentStoreError(collection, document_id, str(e)) from e
        return bool(result.matched_count > 0)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
