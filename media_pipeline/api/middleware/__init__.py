"""API middleware components."""

from media_pipeline.api.middleware.error_handler import error_handler_middleware
from media_pipeline.api.middleware.logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
    "error_handler_middleware",
]
