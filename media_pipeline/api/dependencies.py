"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from media_pipeline.application.services.ingestion import MediaIngestionService
from media_pipeline.application.services.startup_checks import StartupReport, run_startup_checks
from media_pipeline.application.services.status_poller import ProcessingStatusPoller
from media_pipeline.commons.settings.loader import get_settings as _load_settings
from media_pipeline.commons.settings.models import Settings
from media_pipeline.commons.telemetry import get_logger
from media_pipeline.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)

_poller: ProcessingStatusPoller | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def build_ingestion_service(factory: InfrastructureFactory) -> MediaIngestionService:
    """Wire the ingestion orchestrator from the factory's adapters."""
    return MediaIngestionService(
        storage=factory.get_object_storage(),
        transcoding=factory.get_transcoding_provider(),
        document_db=factory.get_document_db(),
        settings=factory.settings,
    )


def get_ingestion_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> MediaIngestionService:
    """Get the media ingestion service with all dependencies.

    Args:
        factory: Infrastructure factory.

    Returns:
        Configured media ingestion service.
    """
    return build_ingestion_service(factory)


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
IngestionServiceDep = Annotated[MediaIngestionService, Depends(get_ingestion_service)]


async def init_services(settings: Settings) -> StartupReport:
    """Validate dependencies and prepare storage before serving requests.

    Args:
        settings: Application settings.

    Returns:
        Report of the startup checks.

    Raises:
        StorageUnavailable: If object storage cannot be reached.
    """
    global _poller  # noqa: PLW0603

    factory = get_factory(settings)
    storage = factory.get_object_storage()

    report = await run_startup_checks(settings.transcoding, storage)
    await storage.initialize()

    service = build_ingestion_service(factory)
    await service.ensure_indexes()

    if settings.processing.poll_interval_seconds > 0:
        _poller = ProcessingStatusPoller(
            service,
            interval_seconds=settings.processing.poll_interval_seconds,
            batch_size=settings.processing.poll_batch_size,
        )
        await _poller.start()

    return report


async def shutdown_services() -> None:
    """Stop background work and close all infrastructure clients."""
    global _poller  # noqa: PLW0603

    if _poller is not None:
        await _poller.stop()
        _poller = None
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        logger.debug("Infrastructure factory was never initialized")
    finally:
        reset_factory()
        get_settings.cache_clear()
