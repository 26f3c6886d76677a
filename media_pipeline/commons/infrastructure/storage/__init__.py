"""Object storage gateway abstractions and implementations."""

from media_pipeline.commons.infrastructure.storage.base import (
    EndpointKind,
    HealthStatus,
    ObjectMetadata,
    ObjectStorageBase,
    StorageError,
)
from media_pipeline.commons.infrastructure.storage.minio_provider import (
    MinioObjectStorage,
    public_read_policy,
)

__all__ = [
    # Base classes
    "EndpointKind",
    "HealthStatus",
    "ObjectMetadata",
    "ObjectStorageBase",
    # Implementations
    "MinioObjectStorage",
    "public_read_policy",
    # Exceptions
    "StorageError",
]
