"""Abstract base class for the object storage gateway."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import BinaryIO


class EndpointKind(str, Enum):
    """Which configured endpoint a URL is signed against.

    ``INTERNAL`` is reachable by this service and other trusted backends
    (the transcoding provider fetches through it when it is routable).
    ``PUBLIC`` is what browsers and mobile clients can reach.
    """

    INTERNAL = "internal"
    PUBLIC = "public"


@dataclass
class ObjectMetadata:
    """Metadata for a stored object."""

    object_name: str
    size_bytes: int
    content_type: str
    last_modified: datetime | None = None
    etag: str = ""


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class StorageError(Exception):
    """Any network, credential or protocol failure talking to object storage."""

    def __init__(
        self,
        message: str,
        object_name: str | None = None,
        endpoint: str | None = None,
    ) -> None:
        self.message = message
        self.object_name = object_name
        self.endpoint = endpoint
        super().__init__(message)


class ObjectStorageBase(ABC):
    """Single-bucket object storage gateway.

    All methods raise ``StorageError`` on failure. No method retries.
    """

    @property
    @abstractmethod
    def bucket(self) -> str:
        """Name of the bucket every object lives in."""

    @abstractmethod
    def endpoint_url(self, endpoint: EndpointKind = EndpointKind.INTERNAL) -> str:
        """Return ``scheme://host:port`` of an endpoint, for diagnostics."""

    @abstractmethod
    async def initialize(self) -> bool:
        """Ensure the bucket exists.

        A newly created bucket gets a read-only policy for the public prefix.
        Calling this again on an existing bucket changes nothing.

        Returns:
            True if the bucket was created, False if it already existed.
        """

    @abstractmethod
    async def issue_upload_url(
        self,
        object_name: str,
        expiry_seconds: int = 3600,
        endpoint: EndpointKind = EndpointKind.PUBLIC,
    ) -> str:
        """Generate a time-limited PUT URL for a single object.

        Args:
            object_name: Key the client will upload to.
            expiry_seconds: URL validity duration.
            endpoint: Endpoint whose host the URL is signed for.

        Returns:
            Presigned URL string.
        """

    @abstractmethod
    async def issue_download_url(
        self,
        object_name: str,
        expiry_seconds: int = 3600,
        endpoint: EndpointKind = EndpointKind.PUBLIC,
    ) -> str:
        """Generate a time-limited GET URL for a single object.

        Args:
            object_name: Key to read.
            expiry_seconds: URL validity duration.
            endpoint: Endpoint whose host the URL is signed for.

        Returns:
            Presigned URL string.
        """

    @abstractmethod
    def public_url(self, object_name: str) -> str:
        """Non-expiring URL of an object under the public-read prefix.

        The port is omitted when it is the scheme's default.
        """

    @abstractmethod
    async def put(
        self,
        object_name: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> ObjectMetadata:
        """Upload an object from this process."""

    @abstractmethod
    async def stat(self, object_name: str) -> ObjectMetadata | None:
        """Return object metadata, or None if the object does not exist."""

    @abstractmethod
    async def delete(self, object_name: str) -> None:
        """Delete an object. Deleting a missing object is not an error."""

    @abstractmethod
    def iter_objects(self, prefix: str = "") -> AsyncIterator[str]:
        """Lazily yield object names under ``prefix``.

        The iterator cannot be restarted; call again to re-list from the start.
        """
        ...

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Probe the internal endpoint by listing buckets."""
