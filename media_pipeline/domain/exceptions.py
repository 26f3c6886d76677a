"""Domain exceptions for the media ingestion pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from media_pipeline.domain.models.media_asset import AssetStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class StorageUnavailable(DomainException):
    """Raised when object storage cannot be reached.

    Fatal at startup; at request time the caller may try again later.
    """

    def __init__(self, endpoint: str, reason: str | None = None) -> None:
        self.endpoint = endpoint
        self.reason = reason
        message = f"MinIO connection failed: {endpoint}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UploadSlotExpired(DomainException):
    """Raised when an upload slot expired before the object arrived."""

    def __init__(self, object_name: str, expired_at: datetime) -> None:
        self.object_name = object_name
        self.expired_at = expired_at
        super().__init__(
            f"Upload slot for {object_name} expired at {expired_at.isoformat()}"
        )


class UploadMissing(DomainException):
    """Raised when processing is requested before the object is in storage."""

    def __init__(self, object_name: str) -> None:
        self.object_name = object_name
        super().__init__(f"Object {object_name} has not been uploaded yet")


class UploadTooLarge(DomainException):
    """Raised when a file exceeds the configured maximum upload size."""

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f"Upload of {size_bytes} bytes exceeds the {max_bytes} byte limit"
        )


class UploadTransportFailure(DomainException):
    """Raised by the upload client when the raw PUT to storage fails."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Upload to storage failed: {reason}")


class SubmissionFailure(DomainException):
    """Raised when the transcoding provider rejects a submission."""

    def __init__(
        self,
        asset_id: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.asset_id = asset_id
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Submission failed for asset {asset_id}: {reason}")


class ProviderTerminalError(DomainException):
    """The provider reported a failed status after submission succeeded."""

    def __init__(self, asset_id: str, provider_status: str, reason: str | None = None) -> None:
        self.asset_id = asset_id
        self.provider_status = provider_status
        self.reason = reason
        detail = reason or f"provider status '{provider_status}'"
        super().__init__(f"Transcoding failed for asset {asset_id}: {detail}")


class AssetNotFound(DomainException):
    """Raised when a media asset record does not exist."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Media asset not found: {identifier}")


class AssetAlreadySubmitted(DomainException):
    """Raised when an attempt was already submitted and must be retried explicitly."""

    def __init__(self, asset_id: str, status: AssetStatus) -> None:
        self.asset_id = asset_id
        self.status = status
        super().__init__(
            f"Asset {asset_id} was already submitted (status: {status.value}); "
            "use retry to start a new attempt"
        )


class InvalidStatusTransition(DomainException):
    """Raised when a status change would move an asset backwards."""

    def __init__(self, asset_id: str, current: AssetStatus, target: AssetStatus) -> None:
        self.asset_id = asset_id
        self.current = current
        self.target = target
        super().__init__(
            f"Asset {asset_id} cannot move from {current.value} to {target.value}"
        )
