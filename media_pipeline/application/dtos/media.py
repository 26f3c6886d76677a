"""DTOs for media ingestion operations.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from media_pipeline.domain.models.media_asset import AssetSource, AssetStatus, MediaKind


class CamelModel(BaseModel):
    """Base for request/response bodies exchanged with web and mobile clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUploadUrlRequest(CamelModel):
    """Request for a presigned upload slot."""

    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=3, description="MIME type of the file")
    size: int | None = Field(default=None, ge=0, description="File size in bytes")


class UploadUrlResponse(CamelModel):
    """A presigned PUT target and the record created for it."""

    upload_url: str
    object_name: str
    asset_id: str
    expires_in: int = Field(description="Seconds the upload URL stays valid")
    expires_at: datetime


class ProcessUploadRequest(CamelModel):
    """Notice that the client finished uploading ``object_name``."""

    object_name: str = Field(min_length=1)
    passthrough: str | None = Field(default=None, max_length=255)


class TranscodingInfo(CamelModel):
    """Provider-side view of a submitted asset."""

    provider_asset_id: str | None = None
    playback_id: str | None = None
    status: str | None = None
    duration_seconds: float | None = None
    thumbnail_url: str | None = None


class ProcessUploadResponse(CamelModel):
    """Result of submitting an upload."""

    asset_id: str
    kind: MediaKind
    status: AssetStatus
    hls_url: str | None = None
    public_url: str | None = None
    transcoding: TranscodingInfo | None = None


class MediaAssetDTO(CamelModel):
    """Media asset as returned to clients.

    ``hls_url`` is only present once the provider reports the asset ready.
    """

    id: str
    object_name: str
    kind: MediaKind
    source: AssetSource
    status: AssetStatus
    provider_status: str | None = None
    provider_asset_id: str | None = None
    playback_id: str | None = None
    hls_url: str | None = None
    thumbnail_url: str | None = None
    preview_url: str | None = None
    public_url: str | None = None
    duration_seconds: float | None = None
    aspect_ratio: str | None = None
    max_resolution: str | None = None
    max_frame_rate: float | None = None
    filename: str = ""
    content_type: str = ""
    size_bytes: int | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    ready_at: datetime | None = None


class AssetView(CamelModel):
    """An asset plus the error of the refresh attempted while reading it."""

    asset: MediaAssetDTO
    refresh_error: str | None = Field(
        default=None,
        description="Why the provider status could not be refreshed, if it failed",
    )


class AssetListResponse(CamelModel):
    """A page of assets."""

    items: list[MediaAssetDTO]
    total: int
    page: int
    limit: int


class DirectUploadRequest(CamelModel):
    """Request for a provider-hosted upload URL."""

    filename: str = ""
    content_type: str = "video/*"
    cors_origin: str | None = None
    passthrough: str | None = Field(default=None, max_length=255)


class DirectUploadResponse(CamelModel):
    """Provider-hosted upload target."""

    upload_id: str
    upload_url: str
    asset_id: str


class UploadStatusResponse(CamelModel):
    """State of a direct upload.

    Once the provider has created the asset, ``hls_url`` and ``transcoding``
    carry the playback details the same way the process response does.
    """

    upload_id: str
    status: str
    asset_id: str
    asset_status: AssetStatus
    provider_asset_id: str | None = None
    error: str | None = None
    hls_url: str | None = None
    transcoding: TranscodingInfo | None = None


class ProviderWebhookEvent(CamelModel):
    """Notification body sent by the transcoding provider."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookAck(CamelModel):
    """Acknowledgement returned to the provider."""

    received: bool = True
    asset_id: str | None = None
