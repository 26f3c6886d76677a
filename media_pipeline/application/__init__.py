"""Application layer - use cases and orchestration.

This layer contains:
- Services: the ingestion orchestrator, startup checks and status poller
- DTOs: Data transfer objects for API boundaries
"""

from media_pipeline.application.dtos import (
    AssetView,
    MediaAssetDTO,
    ProcessUploadResponse,
    UploadUrlResponse,
)
from media_pipeline.application.services import (
    MediaIngestionService,
    ProcessingStatusPoller,
    run_startup_checks,
)

__all__ = [
    # DTOs
    "AssetView",
    "MediaAssetDTO",
    "ProcessUploadResponse",
    "UploadUrlResponse",
    # Services
    "MediaIngestionService",
    "ProcessingStatusPoller",
    "run_startup_checks",
]
