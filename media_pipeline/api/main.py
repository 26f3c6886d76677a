"""FastAPI application factory and lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_pipeline.api.dependencies import get_settings, init_services, shutdown_services
from media_pipeline.api.middleware.error_handler import error_handler_middleware
from media_pipeline.api.middleware.logging import LoggingMiddleware
from media_pipeline.api.openapi.routes import health, media
from media_pipeline.commons.telemetry import configure_logging, get_logger

# Loggers that share our formatter; uvicorn's own handlers are replaced.
_SERVICE_LOGGERS = ("media_pipeline", "uvicorn", "uvicorn.error", "uvicorn.access")

logger = get_logger(__name__)


def _setup_logging(*, include_server: bool = False) -> None:
    """Point the service loggers at stdout with the configured format.

    Runs once at import so application modules log consistently, and again
    from the lifespan with ``include_server`` once uvicorn has installed
    its own handlers.
    """
    settings = get_settings()
    log_level = settings.telemetry.log_level or settings.app.log_level
    names = _SERVICE_LOGGERS if include_server else _SERVICE_LOGGERS[:1]

    for name in names:
        configure_logging(
            level=log_level,
            format_type=settings.telemetry.log_format,
            logger_name=name,
        )

    logging.getLogger().setLevel(log_level.upper())


_setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown.

    Startup fails, and the server never accepts requests, when object
    storage is unreachable. Missing transcoding credentials only disable
    video and audio submission.
    """
    _setup_logging(include_server=True)

    settings = get_settings()
    report = await init_services(settings)
    app.state.startup_report = report
    logger.info(
        "Media pipeline ready",
        extra={
            "storage_latency_ms": report.storage.latency_ms,
            "transcoding_enabled": report.transcoding_enabled,
        },
    )

    yield

    await shutdown_services()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Media ingestion pipeline - object storage uploads and transcoding",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    _configure_middleware(app, settings)
    _register_routes(app, settings)

    return app


def _configure_middleware(app: FastAPI, settings: Any) -> None:
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # Error handler (as middleware)
    app.middleware("http")(error_handler_middleware)


def _register_routes(app: FastAPI, settings: Any) -> None:
    """Register API routes."""
    # Health routes (no prefix for standard health checks)
    app.include_router(health.router, tags=["Health"])

    app.include_router(media.router, prefix=settings.server.api_prefix, tags=["Media"])


# Create default app instance
app = create_app()
