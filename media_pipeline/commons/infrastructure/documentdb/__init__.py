"""Document database abstractions and implementations."""

from media_pipeline.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DuplicateDocumentError,
)
from media_pipeline.commons.infrastructure.documentdb.mongodb_provider import MongoDBDocumentDB

__all__ = [
    # Base classes
    "DocumentDBBase",
    # Implementations
    "MongoDBDocumentDB",
    # Exceptions
    "DuplicateDocumentError",
]
