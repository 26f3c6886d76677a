"""Domain layer - media asset lifecycle and its rules."""

from media_pipeline.domain.exceptions import (
    AssetAlreadySubmitted,
    AssetNotFound,
    DomainException,
    InvalidStatusTransition,
    ProviderTerminalError,
    StorageUnavailable,
    SubmissionFailure,
    UploadMissing,
    UploadSlotExpired,
    UploadTooLarge,
    UploadTransportFailure,
)
from media_pipeline.domain.models import (
    AssetSource,
    AssetStatus,
    MediaAsset,
    MediaKind,
    ProviderAsset,
    UploadSlot,
)
from media_pipeline.domain.value_objects import ObjectName

__all__ = [
    # Exceptions
    "DomainException",
    "StorageUnavailable",
    "UploadSlotExpired",
    "UploadMissing",
    "UploadTooLarge",
    "UploadTransportFailure",
    "SubmissionFailure",
    "ProviderTerminalError",
    "AssetNotFound",
    "AssetAlreadySubmitted",
    "InvalidStatusTransition",
    # Models
    "MediaAsset",
    "MediaKind",
    "AssetSource",
    "AssetStatus",
    "ProviderAsset",
    "UploadSlot",
    # Value Objects
    "ObjectName",
]
