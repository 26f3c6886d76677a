"""Transcoding provider abstractions and implementations."""

from media_pipeline.infrastructure.transcoding.base import (
    PLACEHOLDER_CREDENTIALS,
    DirectUpload,
    DirectUploadStatus,
    ProviderCredentialsMissing,
    SubmissionPolicy,
    TranscodingProviderBase,
    TranscodingProviderError,
)
from media_pipeline.infrastructure.transcoding.mux_client import MuxTranscodingClient

__all__ = [
    # Base classes
    "TranscodingProviderBase",
    "SubmissionPolicy",
    "DirectUpload",
    "DirectUploadStatus",
    "PLACEHOLDER_CREDENTIALS",
    # Implementations
    "MuxTranscodingClient",
    # Exceptions
    "TranscodingProviderError",
    "ProviderCredentialsMissing",
]
