"""Client-side helpers for uploading media to the pipeline."""

from media_pipeline.client.uploader import (
    MediaUploader,
    UploadInProgressError,
    UploadRequestError,
    UploadState,
    UploadStatus,
)

__all__ = [
    "MediaUploader",
    "UploadInProgressError",
    "UploadRequestError",
    "UploadState",
    "UploadStatus",
]
