"""Unit tests for startup checks."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from media_pipeline.application.services.startup_checks import (
    CREDENTIALS_HELP_URL,
    run_startup_checks,
    validate_storage_connection,
    validate_transcoding_credentials,
)
from media_pipeline.commons.infrastructure.storage.base import EndpointKind, HealthStatus
from media_pipeline.commons.settings.models import TranscodingSettings
from media_pipeline.domain.exceptions import StorageUnavailable

MODULE = "media_pipeline.application.services.startup_checks"


@pytest.fixture
def storage():
    storage = MagicMock()
    storage.endpoint_url.return_value = "http://minio:9000"
    storage.health_check = AsyncMock(
        return_value=HealthStatus(healthy=True, latency_ms=3.2, details={"bucket": "sda-media"})
    )
    return storage


@pytest.fixture
def configured():
    return TranscodingSettings(token_id="token-id", token_secret="token-secret")


class TestTranscodingCredentials:
    """Tests for validate_transcoding_credentials."""

    def test_configured(self, configured):
        assert validate_transcoding_credentials(configured) == []

    def test_both_missing(self):
        warnings = validate_transcoding_credentials(TranscodingSettings())
        assert warnings == ["MUX_TOKEN_ID is not set", "MUX_TOKEN_SECRET is not set"]

    def test_placeholders(self):
        settings = TranscodingSettings(
            token_id="your-mux-token-id", token_secret="your-mux-token-secret"
        )
        assert validate_transcoding_credentials(settings) == [
            "MUX_TOKEN_ID is set to placeholder value",
            "MUX_TOKEN_SECRET is set to placeholder value",
        ]

    def test_warning_names_dashboard(self):
        with patch(f"{MODULE}.logger") as logger:
            validate_transcoding_credentials(TranscodingSettings(token_id="id"))

        args = logger.warning.call_args.args
        assert args[1] == "MUX_TOKEN_SECRET is not set"
        assert args[2] == CREDENTIALS_HELP_URL


class TestStorageConnection:
    """Tests for validate_storage_connection."""

    async def test_healthy(self, storage):
        status = await validate_storage_connection(storage)

        assert status.healthy
        storage.endpoint_url.assert_called_once_with(EndpointKind.INTERNAL)

    async def test_unreachable_names_endpoint(self, storage):
        storage.health_check.return_value = HealthStatus(
            healthy=False,
            latency_ms=5000.0,
            message="MinIO connection failed: http://minio:9000",
            details={"error": "Connection refused"},
        )

        with pytest.raises(StorageUnavailable) as exc_info:
            await validate_storage_connection(storage)

        assert exc_info.value.endpoint == "http://minio:9000"
        assert exc_info.value.reason == "Connection refused"
        assert str(exc_info.value).startswith("MinIO connection failed: http://minio:9000")


class TestRunStartupChecks:
    """Tests for run_startup_checks."""

    async def test_report(self, configured, storage):
        report = await run_startup_checks(configured, storage)

        assert report.transcoding_enabled
        assert report.warnings == []
        assert report.storage.latency_ms == 3.2

    async def test_missing_credentials_do_not_abort(self, storage):
        report = await run_startup_checks(TranscodingSettings(), storage)

        assert not report.transcoding_enabled
        assert len(report.warnings) == 2

    async def test_storage_failure_aborts(self, configured, storage):
        storage.health_check.return_value = HealthStatus(
            healthy=False, latency_ms=1.0, message="MinIO connection failed: http://minio:9000"
        )

        with patch(f"{MODULE}.logger") as logger, pytest.raises(StorageUnavailable):
            await run_startup_checks(configured, storage)

        assert logger.critical.call_args.args[0].startswith("Startup validation failed")
