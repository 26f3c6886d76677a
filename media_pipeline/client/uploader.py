"""Caller-side upload flow for the admin panel and apps.

Drives one file through upload slot, raw PUT and processing, reporting
coarse progress checkpoints. Nothing here is persisted: after a restart the
only source of truth is the asset record on the server.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

import httpx

from media_pipeline.commons.telemetry import get_logger
from media_pipeline.domain.exceptions import UploadTransportFailure

DEFAULT_MAX_SIZE_BYTES = 2 * 1024 * 1024 * 1024

# Progress checkpoints for the storage path
PROGRESS_SLOT = 10
PROGRESS_PUT = 20
PROGRESS_PROCESS = 50
PROGRESS_DONE = 100

# Progress checkpoints for the direct-to-provider path
DIRECT_PROGRESS_PUT = 30
DIRECT_PROGRESS_POLL = 70


class UploadState(str, Enum):
    """States of one upload run."""

    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class UploadStatus:
    """Transient UI state for one upload."""

    state: UploadState = UploadState.IDLE
    progress: int = 0
    message: str = ""
    asset_id: str | None = None
    provider_asset_id: str | None = None
    hls_url: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: float | None = None

    @property
    def is_busy(self) -> bool:
        return self.state in (UploadState.UPLOADING, UploadState.PROCESSING)


class UploadInProgressError(Exception):
    """Raised when an upload is started while another one is running."""


class UploadRequestError(Exception):
    """The media API rejected a step of the flow."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _api_error(step: str, response: httpx.Response) -> UploadRequestError:
    detail = response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        detail = body["error"].get("message") or detail
    return UploadRequestError(f"{step}: {detail}", status_code=response.status_code)


class MediaUploader:
    """State machine ``idle -> uploading -> processing -> complete | error``.

    A failure at any step stops the run in ``error``; there is no resume.
    Call ``reset()`` and start a new upload to try again.

    Example:
        >>> uploader = MediaUploader("http://localhost:3000/v1", on_status=print)
        >>> status = await uploader.upload("sermon.mp4", data, "video/mp4")
    """

    def __init__(
        self,
        api_base_url: str,
        *,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        on_status: Callable[[UploadStatus], None] | None = None,
        poll_interval_seconds: float = 2.0,
        max_poll_attempts: int = 30,
        timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            api_base_url: Media API base, e.g. ``http://localhost:3000/v1``.
            max_size_bytes: Files larger than this are rejected before any request.
            on_status: Called with every status change.
            poll_interval_seconds: Delay between direct upload status polls.
            max_poll_attempts: Polls before a direct upload is reported as timed out.
            timeout_seconds: Per-request timeout, generous for the raw PUT.
            transport: Optional transport override.
        """
        self._api_base_url = api_base_url.rstrip("/")
        self._max_size_bytes = max_size_bytes
        self._on_status = on_status
        self._poll_interval = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)
        self._status = UploadStatus()
        self._logger = get_logger(__name__)

    @property
    def status(self) -> UploadStatus:
        return self._status

    def reset(self) -> None:
        """Return to ``idle`` so a new upload can start."""
        if self._status.is_busy:
            raise UploadInProgressError("Cannot reset while an upload is running")
        self._set(UploadStatus())

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MediaUploader":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _set(self, status: UploadStatus) -> None:
        self._status = status
        if self._on_status is not None:
            self._on_status(status)

    def _advance(self, state: UploadState, progress: int, message: str, **fields: Any) -> None:
        self._set(replace(self._status, state=state, progress=progress, message=message, **fields))

    def _begin(self, size: int) -> bool:
        if self._status.is_busy:
            raise UploadInProgressError("An upload is already in progress")
        self._status = UploadStatus()
        if size > self._max_size_bytes:
            limit_mb = self._max_size_bytes // (1024 * 1024)
            self._fail(f"File is too large (maximum {limit_mb} MB)")
            return False
        return True

    def _fail(self, message: str) -> UploadStatus:
        self._logger.warning("Upload failed: %s", message)
        self._set(UploadStatus(state=UploadState.ERROR, progress=0, message=message))
        return self._status

    async def upload(self, filename: str, data: bytes, content_type: str) -> UploadStatus:
        """Upload through object storage and submit for processing.

        Returns:
            The final status, ``complete`` or ``error``.

        Raises:
            UploadInProgressError: If another upload is running.
        """
        if not self._begin(len(data)):
            return self._status
        try:
            self._advance(UploadState.UPLOADING, PROGRESS_SLOT, "Getting upload URL...")
            slot = await self._post(
                "/media/upload-url",
                {"filename": filename, "contentType": content_type, "size": len(data)},
                step="Failed to get upload URL",
            )

            self._advance(UploadState.UPLOADING, PROGRESS_PUT, "Uploading file...")
            await self._put(slot["uploadUrl"], data, content_type)

            self._advance(UploadState.PROCESSING, PROGRESS_PROCESS, "Processing media...")
            result = await self._post(
                "/media/process",
                {"objectName": slot["objectName"]},
                step="Failed to process media",
            )
        except (UploadRequestError, UploadTransportFailure) as e:
            return self._fail(str(e))
        except httpx.HTTPError as e:
            return self._fail(f"Network error: {e}")
        except Exception as e:
            return self._fail_unexpected(e)

        transcoding = result.get("transcoding") or {}
        self._advance(
            UploadState.COMPLETE,
            PROGRESS_DONE,
            "Upload complete",
            asset_id=result.get("assetId"),
            provider_asset_id=transcoding.get("providerAssetId"),
            hls_url=result.get("hlsUrl") or result.get("publicUrl"),
            thumbnail_url=transcoding.get("thumbnailUrl"),
            duration_seconds=transcoding.get("durationSeconds"),
        )
        return self._status

    async def upload_direct(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        cors_origin: str | None = None,
    ) -> UploadStatus:
        """Upload straight to the transcoding provider, skipping object storage.

        Polls the upload until the provider has created an asset. The asset
        is usually still being prepared at that point; the stream URL is
        already known and starts playing once the provider is done.

        Returns:
            The final status, ``complete`` or ``error``.

        Raises:
            UploadInProgressError: If another upload is running.
        """
        if not self._begin(len(data)):
            return self._status
        try:
            self._advance(UploadState.UPLOADING, PROGRESS_SLOT, "Getting upload URL...")
            body: dict[str, Any] = {"filename": filename, "contentType": content_type}
            if cors_origin:
                body["corsOrigin"] = cors_origin
            upload = await self._post(
                "/media/direct-upload", body, step="Failed to get upload URL"
            )

            self._advance(UploadState.UPLOADING, DIRECT_PROGRESS_PUT, "Uploading file...")
            await self._put(upload["uploadUrl"], data, content_type)

            self._advance(UploadState.PROCESSING, DIRECT_PROGRESS_POLL, "Processing media...")
            linked = await self._wait_for_asset(upload["uploadId"])
        except (UploadRequestError, UploadTransportFailure) as e:
            return self._fail(str(e))
        except httpx.HTTPError as e:
            return self._fail(f"Network error: {e}")
        except Exception as e:
            return self._fail_unexpected(e)

        transcoding = linked.get("transcoding") or {}
        self._advance(
            UploadState.COMPLETE,
            PROGRESS_DONE,
            "Upload complete",
            asset_id=linked.get("assetId"),
            provider_asset_id=linked.get("providerAssetId"),
            hls_url=linked.get("hlsUrl"),
            thumbnail_url=transcoding.get("thumbnailUrl"),
            duration_seconds=transcoding.get("durationSeconds"),
        )
        return self._status

    async def _wait_for_asset(self, upload_id: str) -> dict[str, Any]:
        """Poll the upload until it is linked to a provider asset."""
        for attempt in range(1, self._max_poll_attempts + 1):
            await asyncio.sleep(self._poll_interval)
            response = await self._client.get(
                f"{self._api_base_url}/media/upload-status/{upload_id}"
            )
            if response.is_success:
                status = self._json(response, "Failed to check upload status")
                if status.get("providerAssetId"):
                    return status
                if status.get("assetStatus") == "errored":
                    raise UploadRequestError(
                        status.get("error") or f"Upload {status.get('status', 'failed')}"
                    )
            self._advance(
                UploadState.PROCESSING,
                min(DIRECT_PROGRESS_POLL + attempt, PROGRESS_DONE - 1),
                f"Processing media... ({attempt}/{self._max_poll_attempts})",
            )
        raise UploadRequestError("Upload timeout - please check media library")

    def _fail_unexpected(self, error: Exception) -> UploadStatus:
        # Anything else still ends the run so reset() and a new upload work.
        self._logger.exception("Unexpected upload failure")
        return self._fail(str(error) or "Upload failed")

    @staticmethod
    def _json(response: httpx.Response, step: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise UploadRequestError(
                f"{step}: unexpected response from server", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise UploadRequestError(
                f"{step}: unexpected response from server", status_code=response.status_code
            )
        return data

    async def _post(self, path: str, body: dict[str, Any], step: str) -> dict[str, Any]:
        response = await self._client.post(f"{self._api_base_url}{path}", json=body)
        if not response.is_success:
            raise _api_error(step, response)
        return self._json(response, step)

    async def _put(self, url: str, data: bytes, content_type: str) -> None:
        try:
            response = await self._client.put(
                url, content=data, headers={"Content-Type": content_type}
            )
        except httpx.HTTPError as e:
            raise UploadTransportFailure(str(e)) from e
        if not response.is_success:
            raise UploadTransportFailure(
                f"storage responded {response.status_code}", status_code=response.status_code
            )
