"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from media_pipeline.api.dependencies import FactoryDep, SettingsDep

router = APIRouter()


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    message: str | None = Field(default=None, description="Additional details")
    latency_ms: float | None = Field(default=None, description="Probe latency")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components.

    Storage or database failures make the service unhealthy. Missing
    transcoding credentials only degrade it.
    """
    components: list[ComponentHealth] = []

    storage_status = await factory.get_object_storage().health_check()
    components.append(
        ComponentHealth(
            name="object_storage",
            status=HealthStatus.HEALTHY if storage_status.healthy else HealthStatus.UNHEALTHY,
            message=storage_status.message,
            latency_ms=round(storage_status.latency_ms, 2),
        )
    )

    db_status = await factory.get_document_db().health_check()
    components.append(
        ComponentHealth(
            name="document_db",
            status=HealthStatus.HEALTHY if db_status.healthy else HealthStatus.UNHEALTHY,
            message=db_status.message,
            latency_ms=round(db_status.latency_ms, 2),
        )
    )

    configured = factory.get_transcoding_provider().is_configured
    components.append(
        ComponentHealth(
            name="transcoding",
            status=HealthStatus.HEALTHY if configured else HealthStatus.DEGRADED,
            message=(
                f"Provider: {settings.transcoding.provider}"
                if configured
                else "Credentials missing; video and audio submission disabled"
            ),
        )
    )

    statuses = {c.status for c in components}
    if HealthStatus.UNHEALTHY in statuses:
        overall_status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check for Kubernetes probes.",
)
async def readiness(
    factory: FactoryDep,
) -> ReadinessResponse:
    """Check if service is ready to accept requests.

    Ready when object storage and the document database both answer.
    """
    storage_status = await factory.get_object_storage().health_check()
    db_status = await factory.get_document_db().health_check()
    checks = {
        "object_storage": storage_status.healthy,
        "document_db": db_status.healthy,
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
