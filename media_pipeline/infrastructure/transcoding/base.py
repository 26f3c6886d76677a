"""Abstract base class for transcoding providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from media_pipeline.domain.models.media_asset import ProviderAsset

# Values shipped in example .env files; treated the same as unset
PLACEHOLDER_CREDENTIALS = frozenset({"your-mux-token-id", "your-mux-token-secret"})


class TranscodingProviderError(Exception):
    """Provider call failed. ``message`` is the provider's own wording."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ProviderCredentialsMissing(TranscodingProviderError):
    """Token id or secret is empty or still a placeholder."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Transcoding credentials not configured: {', '.join(missing)}",
            status_code=None,
        )


@dataclass(frozen=True)
class SubmissionPolicy:
    """How the provider should build a new asset."""

    playback_policy: Literal["public", "signed"] = "public"
    mp4_support: Literal["none", "standard"] = "none"
    passthrough: str | None = None


@dataclass
class DirectUpload:
    """A provider-hosted upload target for clients that skip object storage."""

    upload_id: str
    upload_url: str


@dataclass
class DirectUploadStatus:
    """State of a direct upload; ``provider_asset_id`` appears once the file arrived."""

    upload_id: str
    status: str
    provider_asset_id: str | None = None
    error: str | None = None

    @property
    def is_failed(self) -> bool:
        return self.status in ("errored", "cancelled", "timed_out")


class TranscodingProviderBase(ABC):
    """Thin adapter over an asynchronous transcoding API.

    Network methods raise ``TranscodingProviderError`` and never retry;
    resubmitting can create a second billable asset. URL helpers are pure.
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether real credentials are present."""

    @abstractmethod
    async def submit_from_url(self, source_url: str, policy: SubmissionPolicy) -> ProviderAsset:
        """Create an asset that the provider fetches from ``source_url``.

        Args:
            source_url: URL the provider can download the source from.
            policy: Playback visibility, progressive download and passthrough.

        Returns:
            The new asset. ``playback_id`` may be empty if not allocated yet.
        """

    @abstractmethod
    async def get_asset(self, provider_asset_id: str) -> ProviderAsset:
        """Fetch the provider's current view of an asset."""

    @abstractmethod
    async def delete_asset(self, provider_asset_id: str) -> None:
        """Delete an asset and stop any processing on it."""

    @abstractmethod
    async def create_direct_upload(
        self,
        policy: SubmissionPolicy,
        cors_origin: str = "*",
    ) -> DirectUpload:
        """Create an upload URL that feeds a new asset directly."""

    @abstractmethod
    async def get_upload_status(self, upload_id: str) -> DirectUploadStatus:
        """Fetch the state of a direct upload."""

    @abstractmethod
    def stream_manifest_url(self, playback_id: str) -> str:
        """HLS manifest URL for a playback id."""

    @abstractmethod
    def thumbnail_url(
        self,
        playback_id: str,
        width: int | None = None,
        height: int | None = None,
        time: float | None = None,
        fit_mode: str | None = None,
    ) -> str:
        """Still image URL for a playback id."""

    @abstractmethod
    def preview_clip_url(
        self,
        playback_id: str,
        width: int | None = None,
        height: int | None = None,
        fps: int | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> str:
        """Animated preview URL for a playback id."""

    async def close(self) -> None:
        """Release client resources."""
