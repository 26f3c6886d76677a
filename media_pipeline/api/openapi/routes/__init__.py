"""API route handlers."""

from media_pipeline.api.openapi.routes import health, media

__all__ = [
    "health",
    "media",
]
