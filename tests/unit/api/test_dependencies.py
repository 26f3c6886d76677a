"""Unit tests for service wiring and startup."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from media_pipeline.api import dependencies
from media_pipeline.commons.infrastructure.storage.base import HealthStatus
from media_pipeline.commons.settings.models import Settings
from media_pipeline.domain.exceptions import StorageUnavailable

MODULE = "media_pipeline.api.dependencies"


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def factory(settings):
    factory = MagicMock()
    factory.settings = settings
    storage = factory.get_object_storage.return_value
    storage.endpoint_url.return_value = "http://localhost:9000"
    storage.health_check = AsyncMock(return_value=HealthStatus(healthy=True, latency_ms=1.0))
    storage.initialize = AsyncMock(return_value=True)
    factory.get_document_db.return_value.create_index = AsyncMock()
    factory.close_all = AsyncMock()
    return factory


@pytest.fixture(autouse=True)
def patched_factory(factory):
    with (
        patch(f"{MODULE}.get_factory", return_value=factory),
        patch(f"{MODULE}.reset_factory") as reset,
    ):
        yield reset
    dependencies._poller = None


class TestInitServices:
    """Tests for init_services."""

    async def test_checks_then_prepares_storage(self, settings, factory):
        report = await dependencies.init_services(settings)

        storage = factory.get_object_storage.return_value
        storage.health_check.assert_awaited_once()
        storage.initialize.assert_awaited_once()
        assert factory.get_document_db.return_value.create_index.await_count == 4
        assert not report.transcoding_enabled
        assert dependencies._poller is None

    async def test_unreachable_storage_aborts(self, settings, factory):
        storage = factory.get_object_storage.return_value
        storage.health_check.return_value = HealthStatus(
            healthy=False, latency_ms=1.0, message="MinIO connection failed: http://localhost:9000"
        )

        with pytest.raises(StorageUnavailable):
            await dependencies.init_services(settings)

        storage.initialize.assert_not_called()

    async def test_poller_started_when_enabled(self, settings):
        settings.processing.poll_interval_seconds = 30

        with patch(f"{MODULE}.ProcessingStatusPoller") as poller_class:
            poller_class.return_value.start = AsyncMock()
            await dependencies.init_services(settings)

        poller_class.return_value.start.assert_awaited_once()
        assert poller_class.call_args.kwargs == {"interval_seconds": 30, "batch_size": 50}


class TestShutdownServices:
    """Tests for shutdown_services."""

    async def test_closes_and_resets(self, factory, patched_factory):
        poller = MagicMock()
        poller.stop = AsyncMock()
        dependencies._poller = poller

        await dependencies.shutdown_services()

        poller.stop.assert_awaited_once()
        factory.close_all.assert_awaited_once()
        patched_factory.assert_called_once()
        assert dependencies._poller is None

    async def test_factory_never_created(self, patched_factory):
        with patch(f"{MODULE}.get_factory", side_effect=ValueError("Settings required")):
            await dependencies.shutdown_services()

        patched_factory.assert_called_once()
