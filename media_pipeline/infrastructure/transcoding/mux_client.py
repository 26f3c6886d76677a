"""Mux Video implementation of the transcoding provider.

API Reference: https://docs.mux.com/api-reference
"""

from typing import Any
from urllib.parse import urlencode

import httpx

from media_pipeline.commons.telemetry import get_logger, timed
from media_pipeline.domain.models.media_asset import ProviderAsset
from media_pipeline.infrastructure.transcoding.base import (
    PLACEHOLDER_CREDENTIALS,
    DirectUpload,
    DirectUploadStatus,
    ProviderCredentialsMissing,
    SubmissionPolicy,
    TranscodingProviderBase,
    TranscodingProviderError,
)

AUTH_FAILED_MESSAGE = (
    "Mux authentication failed. Please check your MUX_TOKEN_ID and MUX_TOKEN_SECRET"
)


def _query(params: dict[str, Any]) -> str:
    # Zero and None both mean "not set"
    present = {key: value for key, value in params.items() if value}
    return f"?{urlencode(present)}" if present else ""


def _to_provider_asset(data: dict[str, Any]) -> ProviderAsset:
    playback_ids = data.get("playback_ids") or []
    errors = data.get("errors") or {}
    return ProviderAsset(
        provider_asset_id=data["id"],
        playback_id=playback_ids[0].get("id", "") if playback_ids else "",
        status=data.get("status", "preparing"),
        duration_seconds=data.get("duration"),
        aspect_ratio=data.get("aspect_ratio"),
        max_resolution=data.get("max_stored_resolution") or data.get("resolution_tier"),
        max_frame_rate=data.get("max_stored_frame_rate"),
        errors=list(errors.get("messages") or []),
    )


def _error_detail(response: httpx.Response) -> str:
    """Pull the provider's message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        messages = error.get("messages") or []
        if messages:
            return "; ".join(str(m) for m in messages)
        if error.get("type"):
            return str(error["type"])
    return response.text or response.reason_phrase


class MuxTranscodingClient(TranscodingProviderBase):
    """Mux Video REST client using HTTP basic auth with an access token pair."""

    def __init__(
        self,
        token_id: str,
        token_secret: str,
        api_base_url: str = "https://api.mux.com",
        stream_base_url: str = "https://stream.mux.com",
        image_base_url: str = "https://image.mux.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Mux client.

        Args:
            token_id: Mux access token id.
            token_secret: Mux access token secret.
            api_base_url: REST API base URL.
            stream_base_url: Base URL for HLS manifests.
            image_base_url: Base URL for thumbnails and animated previews.
            timeout_seconds: Per-request timeout.
            transport: Optional transport override.
        """
        self._token_id = token_id
        self._token_secret = token_secret
        self._stream_base_url = stream_base_url.rstrip("/")
        self._image_base_url = image_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=api_base_url.rstrip("/"),
            auth=(token_id, token_secret),
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._logger = get_logger(__name__)

    @property
    def missing_credentials(self) -> list[str]:
        missing = []
        if not self._token_id or self._token_id in PLACEHOLDER_CREDENTIALS:
            missing.append("MUX_TOKEN_ID")
        if not self._token_secret or self._token_secret in PLACEHOLDER_CREDENTIALS:
            missing.append("MUX_TOKEN_SECRET")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing_credentials

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        missing = self.missing_credentials
        if missing:
            raise ProviderCredentialsMissing(missing)

        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise TranscodingProviderError(f"Mux request failed: {e}") from e

        if response.status_code == 401:
            raise TranscodingProviderError(AUTH_FAILED_MESSAGE, status_code=401)
        if not response.is_success:
            raise TranscodingProviderError(
                f"Mux API error ({response.status_code}): {_error_detail(response)}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return {}
        data: dict[str, Any] = response.json().get("data", {})
        return data

    def _asset_settings(self, policy: SubmissionPolicy) -> dict[str, Any]:
        settings: dict[str, Any] = {"playback_policy": [policy.playback_policy]}
        if policy.mp4_support != "none":
            settings["mp4_support"] = policy.mp4_support
        if policy.passthrough:
            settings["passthrough"] = policy.passthrough
        return settings

    @timed
    async def submit_from_url(self, source_url: str, policy: SubmissionPolicy) -> ProviderAsset:
        payload = {"input": [{"url": source_url}], **self._asset_settings(policy)}
        data = await self._request("POST", "/video/v1/assets", json=payload)
        asset = _to_provider_asset(data)
        self._logger.info(
            "Created Mux asset",
            extra={
                "provider_asset_id": asset.provider_asset_id,
                "provider_status": asset.status,
                "passthrough": policy.passthrough,
            },
        )
        return asset

    async def get_asset(self, provider_asset_id: str) -> ProviderAsset:
        data = await self._request("GET", f"/video/v1/assets/{provider_asset_id}")
        return _to_provider_asset(data)

    async def delete_asset(self, provider_asset_id: str) -> None:
        await self._request("DELETE", f"/video/v1/assets/{provider_asset_id}")
        self._logger.info(
            "Deleted Mux asset", extra={"provider_asset_id": provider_asset_id}
        )

    async def create_direct_upload(
        self,
        policy: SubmissionPolicy,
        cors_origin: str = "*",
    ) -> DirectUpload:
        payload = {
            "cors_origin": cors_origin or "*",
            "new_asset_settings": self._asset_settings(policy),
        }
        data = await self._request("POST", "/video/v1/uploads", json=payload)
        return DirectUpload(upload_id=data["id"], upload_url=data["url"])

    async def get_upload_status(self, upload_id: str) -> DirectUploadStatus:
        data = await self._request("GET", f"/video/v1/uploads/{upload_id}")
        error = data.get("error") or {}
        return DirectUploadStatus(
            upload_id=data.get("id", upload_id),
            status=data.get("status", "waiting"),
            provider_asset_id=data.get("asset_id"),
            error=error.get("message"),
        )

    def stream_manifest_url(self, playback_id: str) -> str:
        return f"{self._stream_base_url}/{playback_id}.m3u8"

    def thumbnail_url(
        self,
        playback_id: str,
        width: int | None = None,
        height: int | None = None,
        time: float | None = None,
        fit_mode: str | None = None,
    ) -> str:
        query = _query({"width": width, "height": height, "time": time, "fit_mode": fit_mode})
        return f"{self._image_base_url}/{playback_id}/thumbnail.jpg{query}"

    def preview_clip_url(
        self,
        playback_id: str,
        width: int | None = None,
        height: int | None = None,
        fps: int | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> str:
        query = _query(
            {"width": width, "height": height, "fps": fps, "start": start, "end": end}
        )
        return f"{self._image_base_url}/{playback_id}/animated.gif{query}"

    async def close(self) -> None:
        await self._client.aclose()
