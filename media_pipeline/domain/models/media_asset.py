"""Media asset domain model."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field

from media_pipeline.domain.exceptions import InvalidStatusTransition


class MediaKind(str, Enum):
    """What an uploaded file is. Only video and audio are transcoded."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    DOCUMENT = "document"

    @property
    def is_transcoded(self) -> bool:
        return self in (MediaKind.VIDEO, MediaKind.AUDIO)

    @classmethod
    def from_content_type(cls, content_type: str) -> "MediaKind":
        """Classify a MIME type."""
        major = content_type.split("/", 1)[0].lower()
        if major == "video":
            return cls.VIDEO
        if major == "audio":
            return cls.AUDIO
        if major == "image":
            return cls.IMAGE
        return cls.DOCUMENT


class AssetSource(str, Enum):
    """How the raw file reached the transcoding provider."""

    STORAGE = "storage"  # Client PUT to object storage, provider fetched it
    DIRECT = "direct"  # Client uploaded straight to the provider


class AssetStatus(str, Enum):
    """Lifecycle status of a media asset record."""

    PENDING = "pending"  # Upload slot issued, object not confirmed
    SUBMITTING = "submitting"  # Claimed for submission to the provider
    PROCESSING = "processing"  # Provider accepted it, not ready yet
    READY = "ready"  # Provider reports playable
    ERRORED = "errored"  # Submission or transcoding failed

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (AssetStatus.READY, AssetStatus.ERRORED)

    def can_transition_to(self, target: "AssetStatus") -> bool:
        """Forward-only check.

        Terminal states accept nothing. Re-writing ``processing`` is allowed
        so the provider's raw status string can be refreshed.
        """
        if self.is_terminal:
            return False
        if target == self:
            return self == AssetStatus.PROCESSING
        return target.rank > self.rank


_TIMESTAMP_FIELDS = {"upload_expires_at", "submitted_at", "ready_at", "created_at", "updated_at"}

_STATUS_RANK = {
    AssetStatus.PENDING: 0,
    AssetStatus.SUBMITTING: 1,
    AssetStatus.PROCESSING: 2,
    AssetStatus.READY: 3,
    AssetStatus.ERRORED: 3,
}


class ProviderAsset(BaseModel):
    """What the transcoding provider currently reports for an asset."""

    provider_asset_id: str
    playback_id: str = ""
    status: str
    duration_seconds: float | None = None
    aspect_ratio: str | None = None
    max_resolution: str | None = None
    max_frame_rate: float | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.status == "ready"

    @property
    def is_errored(self) -> bool:
        return self.status == "errored"


class MediaAsset(BaseModel):
    """A single upload attempt and its transcoding outcome.

    The id is assigned here, not by the provider, so references survive a
    provider swap. ``object_name`` is unique per attempt; a failed attempt is
    retried with a new record rather than reused.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this asset",
    )
    object_name: str = Field(description="Storage key of the raw upload")
    kind: MediaKind
    source: AssetSource = AssetSource.STORAGE
    status: AssetStatus = AssetStatus.PENDING

    filename: str = Field(default="", description="Original client filename")
    content_type: str = "application/octet-stream"
    size_bytes: int | None = Field(default=None, ge=0)
    passthrough: str | None = None

    provider_asset_id: str | None = None
    playback_id: str | None = None
    provider_upload_id: str | None = None
    provider_status: str | None = Field(
        default=None,
        description="Raw provider status string, shown while processing",
    )

    duration_seconds: float | None = None
    aspect_ratio: str | None = None
    max_resolution: str | None = None
    max_frame_rate: float | None = None

    upload_expires_at: datetime | None = None
    submitted_at: datetime | None = None
    ready_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_ready(self) -> bool:
        return self.status == AssetStatus.READY

    def processing_age_seconds(self, now: datetime | None = None) -> float | None:
        """Seconds since submission, or None if never submitted."""
        if self.submitted_at is None:
            return None
        return ((now or datetime.now(UTC)) - self.submitted_at).total_seconds()

    def transition_to(self, new_status: AssetStatus, **updates: Any) -> Self:
        """Create a new instance with a forward status change.

        Args:
            new_status: Target status.
            **updates: Other fields to change in the same write.

        Returns:
            A new MediaAsset instance.

        Raises:
            InvalidStatusTransition: If the change would not move forward.
        """
        if not self.status.can_transition_to(new_status):
            raise InvalidStatusTransition(self.id, self.status, new_status)
        now = datetime.now(UTC)
        changes: dict[str, Any] = {"status": new_status, "updated_at": now, **updates}
        if new_status == AssetStatus.READY and self.ready_at is None:
            changes.setdefault("ready_at", now)
        return self.model_copy(update=changes)

    def mark_submitted(self, snapshot: ProviderAsset) -> Self:
        """Record the provider's answer to a submission."""
        target = AssetStatus.READY if snapshot.is_ready else AssetStatus.PROCESSING
        return self.transition_to(
            target,
            submitted_at=datetime.now(UTC),
            **self._snapshot_fields(snapshot),
        )

    def apply_provider_snapshot(self, snapshot: ProviderAsset) -> Self:
        """Fold a fresh provider status into the record.

        Provider ids are only written when not yet set. Metadata becomes
        fixed once the asset is ready.
        """
        if snapshot.is_errored:
            reason = "; ".join(snapshot.errors) or "Transcoding failed"
            return self.mark_failed(reason, provider_status=snapshot.status)
        target = AssetStatus.READY if snapshot.is_ready else AssetStatus.PROCESSING
        fields = self._snapshot_fields(snapshot)
        if self.submitted_at is None:
            # Direct uploads reach the provider without passing through submission
            fields["submitted_at"] = datetime.now(UTC)
        return self.transition_to(target, **fields)

    def mark_failed(self, error_message: str, **updates: Any) -> Self:
        """Create a new instance in ERRORED status with an error message."""
        return self.transition_to(AssetStatus.ERRORED, error_message=error_message, **updates)

    def _snapshot_fields(self, snapshot: ProviderAsset) -> dict[str, Any]:
        fields: dict[str, Any] = {"provider_status": snapshot.status}
        if not self.provider_asset_id:
            fields["provider_asset_id"] = snapshot.provider_asset_id
        if not self.playback_id and snapshot.playback_id:
            fields["playback_id"] = snapshot.playback_id
        for name in ("duration_seconds", "aspect_ratio", "max_resolution", "max_frame_rate"):
            value = getattr(snapshot, name)
            if value is not None:
                fields[name] = value
        return fields

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store.

        Timestamps stay native datetimes so the store sorts and compares
        them chronologically; everything else is plain JSON values.
        """
        document = self.model_dump(mode="json", exclude=_TIMESTAMP_FIELDS)
        document.update(self.model_dump(include=_TIMESTAMP_FIELDS))
        return document
