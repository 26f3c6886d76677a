"""Unit tests for Application DTOs."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from media_pipeline.application.dtos.media import (
    AssetView,
    CreateUploadUrlRequest,
    DirectUploadRequest,
    MediaAssetDTO,
    ProcessUploadRequest,
    ProcessUploadResponse,
    ProviderWebhookEvent,
    TranscodingInfo,
    UploadUrlResponse,
)
from media_pipeline.domain.models.media_asset import AssetSource, AssetStatus, MediaKind


class TestCreateUploadUrlRequest:
    """Tests for CreateUploadUrlRequest DTO."""

    def test_camel_case_input(self):
        """Test the wire format uses camelCase."""
        request = CreateUploadUrlRequest.model_validate(
            {"filename": "sermon.mp4", "contentType": "video/mp4", "size": 1024}
        )
        assert request.content_type == "video/mp4"
        assert request.size == 1024

    def test_snake_case_accepted(self):
        """Test Python callers can use field names."""
        request = CreateUploadUrlRequest(filename="a.mp4", content_type="video/mp4")
        assert request.size is None

    def test_empty_filename_rejected(self):
        with pytest.raises(ValidationError):
            CreateUploadUrlRequest(filename="", content_type="video/mp4")

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            CreateUploadUrlRequest(filename="a.mp4", content_type="video/mp4", size=-1)


class TestUploadUrlResponse:
    """Tests for UploadUrlResponse DTO."""

    def test_serialized_by_alias(self):
        response = UploadUrlResponse(
            upload_url="https://media.example.org/sda-media/videos/a.mp4?sig=x",
            object_name="videos/a.mp4",
            asset_id="asset-1",
            expires_in=3600,
            expires_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

        data = response.model_dump(by_alias=True, mode="json")

        assert data["uploadUrl"].startswith("https://media.example.org/")
        assert data["objectName"] == "videos/a.mp4"
        assert data["assetId"] == "asset-1"
        assert data["expiresIn"] == 3600
        assert data["expiresAt"] == "2024-01-01T00:00:00Z"


class TestProcessUpload:
    """Tests for process request and response DTOs."""

    def test_request_from_wire(self):
        request = ProcessUploadRequest.model_validate({"objectName": "videos/a.mp4"})
        assert request.object_name == "videos/a.mp4"
        assert request.passthrough is None

    def test_request_requires_object_name(self):
        with pytest.raises(ValidationError):
            ProcessUploadRequest.model_validate({"objectName": ""})

    def test_response_nests_transcoding(self):
        response = ProcessUploadResponse(
            asset_id="asset-1",
            kind=MediaKind.VIDEO,
            status=AssetStatus.PROCESSING,
            hls_url="https://stream.mux.com/abc123.m3u8",
            transcoding=TranscodingInfo(
                provider_asset_id="mux-1", playback_id="abc123", status="preparing"
            ),
        )

        data = response.model_dump(by_alias=True, mode="json")

        assert data["status"] == "processing"
        assert data["hlsUrl"] == "https://stream.mux.com/abc123.m3u8"
        assert data["transcoding"]["providerAssetId"] == "mux-1"
        assert data["transcoding"]["playbackId"] == "abc123"


class TestMediaAssetDTO:
    """Tests for the client view of an asset."""

    def test_view_with_refresh_error(self):
        now = datetime.now(UTC)
        view = AssetView(
            asset=MediaAssetDTO(
                id="asset-1",
                object_name="videos/a.mp4",
                kind=MediaKind.VIDEO,
                source=AssetSource.STORAGE,
                status=AssetStatus.PROCESSING,
                provider_status="preparing",
                created_at=now,
                updated_at=now,
            ),
            refresh_error="Mux request failed: timeout",
        )

        data = view.model_dump(by_alias=True, mode="json")

        assert data["refreshError"] == "Mux request failed: timeout"
        assert data["asset"]["providerStatus"] == "preparing"
        assert data["asset"]["hlsUrl"] is None
        assert data["asset"]["source"] == "storage"


class TestDirectUploadRequest:
    """Tests for DirectUploadRequest DTO."""

    def test_defaults(self):
        request = DirectUploadRequest()
        assert request.content_type == "video/*"
        assert request.cors_origin is None

    def test_cors_origin_alias(self):
        request = DirectUploadRequest.model_validate({"corsOrigin": "https://admin.example.org"})
        assert request.cors_origin == "https://admin.example.org"


class TestProviderWebhookEvent:
    """Tests for provider notifications."""

    def test_extra_fields_tolerated(self):
        event = ProviderWebhookEvent.model_validate(
            {
                "type": "video.asset.ready",
                "data": {"id": "mux-1", "status": "ready"},
                "created_at": "2024-01-01T00:00:00Z",
            }
        )
        assert event.type == "video.asset.ready"
        assert event.data["id"] == "mux-1"
