"""Unit tests for domain exceptions."""

from datetime import UTC, datetime

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
from media_pipeline.domain.models.media_asset import AssetStatus


class TestDomainException:
    """Tests for base DomainException."""

    def test_is_exception(self):
        assert isinstance(DomainException("Test error"), Exception)

    def test_message(self):
        assert str(DomainException("Custom message")) == "Custom message"


class TestStorageUnavailable:
    """Tests for StorageUnavailable."""

    def test_names_endpoint(self):
        exc = StorageUnavailable("http://minio:9000")
        assert str(exc) == "MinIO connection failed: http://minio:9000"
        assert exc.endpoint == "http://minio:9000"
        assert isinstance(exc, DomainException)

    def test_includes_reason(self):
        exc = StorageUnavailable("http://minio:9000", "Connection refused")
        assert str(exc) == "MinIO connection failed: http://minio:9000 (Connection refused)"
        assert exc.reason == "Connection refused"


class TestUploadExceptions:
    """Tests for upload-related exceptions."""

    def test_slot_expired(self):
        expired_at = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        exc = UploadSlotExpired("videos/1-a-x.mp4", expired_at)
        assert exc.object_name == "videos/1-a-x.mp4"
        assert exc.expired_at == expired_at
        assert "2024-01-01T12:00:00+00:00" in str(exc)

    def test_upload_missing(self):
        exc = UploadMissing("videos/1-a-x.mp4")
        assert exc.object_name == "videos/1-a-x.mp4"
        assert "has not been uploaded" in str(exc)

    def test_upload_too_large(self):
        exc = UploadTooLarge(3000, 2000)
        assert exc.size_bytes == 3000
        assert exc.max_bytes == 2000
        assert "3000" in str(exc)

    def test_transport_failure(self):
        exc = UploadTransportFailure("storage responded 403", status_code=403)
        assert exc.status_code == 403
        assert str(exc) == "Upload to storage failed: storage responded 403"


class TestProviderExceptions:
    """Tests for transcoding-related exceptions."""

    def test_submission_failure(self):
        exc = SubmissionFailure("asset-1", "Mux API error (400): invalid input", 400)
        assert exc.asset_id == "asset-1"
        assert exc.reason == "Mux API error (400): invalid input"
        assert exc.status_code == 400
        assert "asset-1" in str(exc)

    def test_provider_terminal_error_default_reason(self):
        exc = ProviderTerminalError("asset-1", "errored")
        assert "provider status 'errored'" in str(exc)

    def test_provider_terminal_error_reason(self):
        exc = ProviderTerminalError("asset-1", "errored", "Invalid file")
        assert str(exc) == "Transcoding failed for asset asset-1: Invalid file"


class TestAssetExceptions:
    """Tests for asset lookup and lifecycle exceptions."""

    def test_asset_not_found(self):
        exc = AssetNotFound("asset-404")
        assert exc.identifier == "asset-404"
        assert "asset-404" in str(exc)

    def test_already_submitted(self):
        exc = AssetAlreadySubmitted("asset-1", AssetStatus.ERRORED)
        assert exc.status == AssetStatus.ERRORED
        assert "retry" in str(exc)

    def test_invalid_transition(self):
        exc = InvalidStatusTransition("asset-1", AssetStatus.READY, AssetStatus.PROCESSING)
        assert exc.current == AssetStatus.READY
        assert exc.target == AssetStatus.PROCESSING
        assert str(exc) == "Asset asset-1 cannot move from ready to processing"
