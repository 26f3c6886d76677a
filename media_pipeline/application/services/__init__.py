"""Application services for media ingestion."""

from media_pipeline.application.services.ingestion import MediaIngestionService
from media_pipeline.application.services.startup_checks import (
    StartupReport,
    run_startup_checks,
    validate_storage_connection,
    validate_transcoding_credentials,
)
from media_pipeline.application.services.status_poller import ProcessingStatusPoller

__all__ = [
    "MediaIngestionService",
    "ProcessingStatusPoller",
    "StartupReport",
    "run_startup_checks",
    "validate_storage_connection",
    "validate_transcoding_credentials",
]
