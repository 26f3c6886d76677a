"""Media upload and processing endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from media_pipeline.api.dependencies import IngestionServiceDep
from media_pipeline.application.dtos.media import (
    AssetListResponse,
    AssetView,
    CreateUploadUrlRequest,
    DirectUploadRequest,
    DirectUploadResponse,
    ProcessUploadRequest,
    ProcessUploadResponse,
    ProviderWebhookEvent,
    UploadStatusResponse,
    UploadUrlResponse,
    WebhookAck,
)
from media_pipeline.commons.telemetry import get_logger
from media_pipeline.domain.models.media_asset import AssetStatus, MediaKind

router = APIRouter()
logger = get_logger(__name__)


class DeleteResponse(BaseModel):
    """Response for asset deletion."""

    success: bool = Field(description="Whether deletion was successful")
    asset_id: str = Field(serialization_alias="assetId", description="ID of the deleted asset")
    message: str = Field(description="Status message")


@router.post(
    "/media/upload-url",
    response_model=UploadUrlResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create upload URL",
    description="Issue a presigned PUT URL and register a pending media asset.",
)
async def create_upload_url(
    request: CreateUploadUrlRequest,
    service: IngestionServiceDep,
) -> UploadUrlResponse:
    """Issue an upload slot for one file."""
    return await service.create_upload_slot(
        filename=request.filename,
        content_type=request.content_type,
        size_bytes=request.size,
    )


@router.post(
    "/media/process",
    response_model=ProcessUploadResponse,
    summary="Process upload",
    description=(
        "Submit an uploaded object for transcoding. Repeating the call for the "
        "same object returns the existing asset."
    ),
)
async def process_upload(
    request: ProcessUploadRequest,
    service: IngestionServiceDep,
) -> ProcessUploadResponse:
    """Verify the upload landed and hand it to the transcoding provider."""
    return await service.process_upload(request.object_name, passthrough=request.passthrough)


@router.post(
    "/media/direct-upload",
    response_model=DirectUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create direct upload",
    description="Create a provider-hosted upload URL, bypassing object storage.",
)
async def create_direct_upload(
    request: DirectUploadRequest,
    service: IngestionServiceDep,
) -> DirectUploadResponse:
    """Create a direct-to-provider upload."""
    return await service.create_direct_upload(
        filename=request.filename,
        content_type=request.content_type,
        cors_origin=request.cors_origin,
        passthrough=request.passthrough,
    )


@router.get(
    "/media/upload-status/{upload_id}",
    response_model=UploadStatusResponse,
    summary="Get direct upload status",
    description="Poll a direct upload until the provider has created its asset.",
)
async def get_upload_status(
    upload_id: str,
    service: IngestionServiceDep,
) -> UploadStatusResponse:
    """Get the state of a direct upload."""
    return await service.get_direct_upload_status(upload_id)


@router.post(
    "/media/webhook/mux",
    response_model=WebhookAck,
    summary="Transcoding provider webhook",
    description="Receive status notifications; each one triggers a fresh status read.",
)
async def provider_webhook(
    event: ProviderWebhookEvent,
    service: IngestionServiceDep,
) -> WebhookAck:
    """Refresh the asset a provider notification refers to."""
    object_id = event.data.get("id")
    if not isinstance(object_id, str) or not object_id:
        logger.warning("Ignoring provider event without an id", extra={"event_type": event.type})
        return WebhookAck(received=True)

    asset = await service.handle_provider_event(event.type, object_id)
    return WebhookAck(received=True, asset_id=asset.id if asset else None)


@router.get(
    "/media",
    response_model=AssetListResponse,
    summary="List media assets",
    description="List media assets, newest first, with optional filters.",
)
async def list_media(
    service: IngestionServiceDep,
    kind: Annotated[MediaKind | None, Query(description="Filter by media kind")] = None,
    status_filter: Annotated[
        AssetStatus | None,
        Query(alias="status", description="Filter by status"),
    ] = None,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
) -> AssetListResponse:
    """List stored assets without refreshing them."""
    return await service.list_assets(kind=kind, status=status_filter, page=page, limit=limit)


@router.get(
    "/media/{asset_id}",
    response_model=AssetView,
    summary="Get media asset",
    description=(
        "Get an asset, refreshing its provider status first. A missing hlsUrl "
        "means the asset is still processing."
    ),
)
async def get_media(
    asset_id: str,
    service: IngestionServiceDep,
) -> AssetView:
    """Get one asset with its current provider status."""
    return await service.get_asset(asset_id)


@router.delete(
    "/media/{asset_id}",
    response_model=DeleteResponse,
    summary="Delete media asset",
    description="Delete the provider asset, the stored object and the record.",
)
async def delete_media(
    asset_id: str,
    service: IngestionServiceDep,
) -> DeleteResponse:
    """Delete an asset everywhere it lives."""
    await service.delete_asset(asset_id)
    return DeleteResponse(
        success=True,
        asset_id=asset_id,
        message="Media asset deleted",
    )


@router.post(
    "/media/{asset_id}/retry",
    response_model=UploadUrlResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Retry media asset",
    description="Discard an errored asset and issue a fresh upload slot for the same file.",
)
async def retry_media(
    asset_id: str,
    service: IngestionServiceDep,
) -> UploadUrlResponse:
    """Start a new attempt for an errored asset."""
    return await service.retry_asset(asset_id)
