"""Checks run before the service accepts ingestion requests."""

from dataclasses import dataclass, field

from media_pipeline.commons.infrastructure.storage.base import (
    EndpointKind,
    HealthStatus,
    ObjectStorageBase,
)
from media_pipeline.commons.settings.models import TranscodingSettings
from media_pipeline.commons.telemetry import get_logger
from media_pipeline.domain.exceptions import StorageUnavailable

logger = get_logger(__name__)

CREDENTIALS_HELP_URL = "https://dashboard.mux.com/settings/access-tokens"

_PLACEHOLDERS = {
    "MUX_TOKEN_ID": "your-mux-token-id",
    "MUX_TOKEN_SECRET": "your-mux-token-secret",
}


@dataclass
class StartupReport:
    """Outcome of the startup checks that did not abort startup."""

    storage: HealthStatus
    warnings: list[str] = field(default_factory=list)

    @property
    def transcoding_enabled(self) -> bool:
        return not self.warnings


def validate_transcoding_credentials(settings: TranscodingSettings) -> list[str]:
    """Return one warning per missing or placeholder credential.

    Missing credentials do not stop the service; video and audio
    submissions fail until they are set.
    """
    warnings: list[str] = []
    values = {"MUX_TOKEN_ID": settings.token_id, "MUX_TOKEN_SECRET": settings.token_secret}
    for name, value in values.items():
        if not value:
            warnings.append(f"{name} is not set")
        elif value == _PLACEHOLDERS[name]:
            warnings.append(f"{name} is set to placeholder value")

    if warnings:
        logger.warning(
            "Transcoding configuration warning: %s. Video upload features will be "
            "disabled. Get credentials at: %s",
            "; ".join(warnings),
            CREDENTIALS_HELP_URL,
        )
    else:
        logger.info("Transcoding credentials validated")
    return warnings


async def validate_storage_connection(storage: ObjectStorageBase) -> HealthStatus:
    """Probe object storage by listing buckets.

    Raises:
        StorageUnavailable: Naming the endpoint that was tried.
    """
    endpoint = storage.endpoint_url(EndpointKind.INTERNAL)
    status = await storage.health_check()
    if not status.healthy:
        reason = (status.details or {}).get("error") or status.message
        raise StorageUnavailable(endpoint, reason)

    logger.info(
        "Object storage connection validated (%s)",
        endpoint,
        extra={"latency_ms": round(status.latency_ms, 2)},
    )
    return status


async def run_startup_checks(
    transcoding: TranscodingSettings,
    storage: ObjectStorageBase,
) -> StartupReport:
    """Run every startup check.

    Raises:
        StorageUnavailable: If object storage is unreachable.
    """
    warnings = validate_transcoding_credentials(transcoding)
    try:
        storage_status = await validate_storage_connection(storage)
    except StorageUnavailable as e:
        logger.critical(
            "Startup validation failed: %s. Ensure MinIO is running and credentials are correct.",
            e,
        )
        raise
    return StartupReport(storage=storage_status, warnings=warnings)
