"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from media_pipeline.commons.infrastructure.storage.base import HealthStatus


class DuplicateDocumentError(Exception):
    """Raised when an insert violates a unique index."""

    def __init__(self, collection: str, message: str) -> None:
        self.collection = collection
        super().__init__(f"Duplicate document in {collection}: {message}")


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents carry their domain ``id``; implementations map it to their
    own primary key and restore it on reads.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert.

        Returns:
            Document ID.

        Raises:
            DuplicateDocumentError: If a unique index is violated.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID, or None."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort specification [(field, direction)].
                  Direction: 1 for ascending, -1 for descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find the first document matching filters, or None."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        conditions: dict[str, Any] | None = None,
    ) -> bool:
        """Update a document, optionally only if it still matches ``conditions``.

        ``conditions`` turns the write into a compare-and-set: the update is
        applied only when the stored document matches every condition at
        write time.

        Args:
            collection: Collection name.
            document_id: Document ID to update.
            updates: Fields to set.
            conditions: Extra filters the stored document must match.

        Returns:
            True if a document matched and was updated, False otherwise.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document. Returns False if it was not found."""

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection name.
            fields: Index fields [(field, direction)].
            unique: Whether index should be unique.
            name: Optional index name.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    @abstractmethod
    async def close(self) -> None:
        """Release client resources."""
