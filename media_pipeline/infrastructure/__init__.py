"""Infrastructure layer - external service implementations."""

from media_pipeline.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from media_pipeline.infrastructure.transcoding import (
    DirectUpload,
    DirectUploadStatus,
    MuxTranscodingClient,
    ProviderCredentialsMissing,
    SubmissionPolicy,
    TranscodingProviderBase,
    TranscodingProviderError,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Transcoding
    "TranscodingProviderBase",
    "SubmissionPolicy",
    "DirectUpload",
    "DirectUploadStatus",
    "MuxTranscodingClient",
    "TranscodingProviderError",
    "ProviderCredentialsMissing",
]
