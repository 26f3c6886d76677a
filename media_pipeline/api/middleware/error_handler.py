"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from media_pipeline.commons.infrastructure.storage.base import StorageError
from media_pipeline.commons.telemetry.logger import get_logger
from media_pipeline.domain.exceptions import (
    AssetAlreadySubmitted,
    AssetNotFound,
    DomainException,
    InvalidStatusTransition,
    StorageUnavailable,
    SubmissionFailure,
    UploadMissing,
    UploadSlotExpired,
    UploadTooLarge,
)
from media_pipeline.infrastructure.transcoding.base import TranscodingProviderError

logger = get_logger(__name__)

# Most specific first; the first match wins.
_DOMAIN_ERRORS: list[tuple[type[DomainException], str, int]] = [
    (StorageUnavailable, "STORAGE_UNAVAILABLE", status.HTTP_503_SERVICE_UNAVAILABLE),
    (UploadSlotExpired, "UPLOAD_SLOT_EXPIRED", status.HTTP_410_GONE),
    (UploadMissing, "UPLOAD_MISSING", status.HTTP_409_CONFLICT),
    (UploadTooLarge, "UPLOAD_TOO_LARGE", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (SubmissionFailure, "SUBMISSION_FAILED", status.HTTP_502_BAD_GATEWAY),
    (AssetNotFound, "ASSET_NOT_FOUND", status.HTTP_404_NOT_FOUND),
    (AssetAlreadySubmitted, "ASSET_ALREADY_SUBMITTED", status.HTTP_409_CONFLICT),
    (InvalidStatusTransition, "INVALID_STATUS_TRANSITION", status.HTTP_409_CONFLICT),
]


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response.

    Args:
        request: HTTP request.
        code: Error code.
        message: Error message.
        status_code: HTTP status code.
        details: Additional details.

    Returns:
        JSON error response.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    # Built outside LoggingMiddleware, so the header is not added for us.
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
        headers={"X-Request-ID": request_id},
    )


def _error_details(exc: DomainException) -> dict[str, Any]:
    """Collect the identifying attributes a client can act on."""
    details: dict[str, Any] = {}
    for name in ("asset_id", "object_name", "endpoint", "identifier", "max_bytes"):
        value = getattr(exc, name, None)
        if value is not None:
            details[name] = value
    if isinstance(exc, AssetAlreadySubmitted):
        details["status"] = exc.status.value
    if isinstance(exc, UploadSlotExpired):
        details["expired_at"] = exc.expired_at.isoformat()
    return details


def _handle_exception(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, DomainException):
        for error_type, code, status_code in _DOMAIN_ERRORS:
            if isinstance(exc, error_type):
                log = logger.error if status_code >= 500 else logger.warning
                log(f"{error_type.__name__}: {exc}", extra={"error_code": code})
                return _build_error_response(
                    request=request,
                    code=code,
                    message=str(exc),
                    status_code=status_code,
                    details=_error_details(exc),
                )

        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, StorageError):
        logger.error(f"Storage error: {exc}")
        return _build_error_response(
            request=request,
            code="STORAGE_UNAVAILABLE",
            message=str(exc),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"endpoint": exc.endpoint} if exc.endpoint else None,
        )

    if isinstance(exc, TranscodingProviderError):
        logger.error(f"Transcoding provider error: {exc}")
        return _build_error_response(
            request=request,
            code="TRANSCODING_PROVIDER_ERROR",
            message=str(exc),
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"status_code": exc.status_code} if exc.status_code else None,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
