"""Data Transfer Objects for application layer."""

from media_pipeline.application.dtos.media import (
    AssetListResponse,
    AssetView,
    CamelModel,
    CreateUploadUrlRequest,
    DirectUploadRequest,
    DirectUploadResponse,
    MediaAssetDTO,
    ProcessUploadRequest,
    ProcessUploadResponse,
    ProviderWebhookEvent,
    TranscodingInfo,
    UploadStatusResponse,
    UploadUrlResponse,
    WebhookAck,
)

__all__ = [
    "CamelModel",
    # Upload slot
    "CreateUploadUrlRequest",
    "UploadUrlResponse",
    # Processing
    "ProcessUploadRequest",
    "ProcessUploadResponse",
    "TranscodingInfo",
    # Assets
    "MediaAssetDTO",
    "AssetView",
    "AssetListResponse",
    # Direct upload
    "DirectUploadRequest",
    "DirectUploadResponse",
    "UploadStatusResponse",
    # Webhook
    "ProviderWebhookEvent",
    "WebhookAck",
]
