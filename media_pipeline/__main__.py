"""Entry point for running the media pipeline API."""

import uvicorn

from media_pipeline.commons.settings import get_settings
from media_pipeline.commons.telemetry import configure_logging, get_logger

logger = get_logger("media_pipeline")


def main() -> None:
    """Run the API server.

    Startup checks run in the application lifespan; when object storage is
    unreachable the server exits with a non-zero status before serving.
    """
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level,
        format_type=settings.telemetry.log_format,
        logger_name="media_pipeline",
    )

    logger.info(f"Starting media pipeline on {settings.server.host}:{settings.server.port}")

    uvicorn.run(
        "media_pipeline.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    main()
