"""Media ingestion orchestration service."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from media_pipeline.application.dtos.media import (
    AssetListResponse,
    AssetView,
    DirectUploadResponse,
    MediaAssetDTO,
    ProcessUploadResponse,
    TranscodingInfo,
    UploadStatusResponse,
    UploadUrlResponse,
)
from media_pipeline.commons.infrastructure.documentdb.base import DocumentDBBase
from media_pipeline.commons.infrastructure.storage.base import (
    EndpointKind,
    ObjectMetadata,
    ObjectStorageBase,
    StorageError,
)
from media_pipeline.commons.settings.models import Settings
from media_pipeline.commons.telemetry import LogContext, get_logger, log_exceptions
from media_pipeline.domain.exceptions import (
    AssetAlreadySubmitted,
    AssetNotFound,
    InvalidStatusTransition,
    ProviderTerminalError,
    StorageUnavailable,
    SubmissionFailure,
    UploadMissing,
    UploadSlotExpired,
    UploadTooLarge,
)
from media_pipeline.domain.models.media_asset import (
    AssetSource,
    AssetStatus,
    MediaAsset,
    MediaKind,
)
from media_pipeline.domain.models.upload_slot import UploadSlot
from media_pipeline.domain.value_objects.object_name import ObjectName
from media_pipeline.infrastructure.transcoding.base import (
    SubmissionPolicy,
    TranscodingProviderBase,
    TranscodingProviderError,
)


class MediaIngestionService:
    """Owns media asset records and moves them through their lifecycle.

    Flow for the storage path:
    1. ``create_upload_slot`` issues a presigned PUT and a ``pending`` record
    2. The client uploads the bytes straight to object storage
    3. ``process_upload`` verifies the object, claims the record and submits it
    4. ``get_asset`` / ``refresh_asset`` pull the provider's status until terminal

    Every status write is conditional on the status that was read, so
    concurrent refreshes never move a record backwards.
    """

    def __init__(
        self,
        storage: ObjectStorageBase,
        transcoding: TranscodingProviderBase,
        document_db: DocumentDBBase,
        settings: Settings,
    ) -> None:
        """Initialize ingestion service with dependencies.

        Args:
            storage: Object storage gateway.
            transcoding: Transcoding provider client.
            document_db: Document database holding asset records.
            settings: Application settings.
        """
        self._storage = storage
        self._transcoding = transcoding
        self._document_db = document_db
        self._settings = settings
        self._logger = get_logger(__name__)

        self._collection = settings.document_db.collections.media_assets
        self._storage_settings = settings.object_storage
        self._transcoding_settings = settings.transcoding

    async def ensure_indexes(self) -> None:
        """Create the indexes lookups and uniqueness depend on."""
        await self._document_db.create_index(
            self._collection, [("object_name", 1)], unique=True, name="object_name_unique"
        )
        await self._document_db.create_index(self._collection, [("provider_asset_id", 1)])
        await self._document_db.create_index(self._collection, [("provider_upload_id", 1)])
        await self._document_db.create_index(
            self._collection, [("status", 1), ("created_at", -1)]
        )

    # Upload slot

    async def create_upload_slot(
        self,
        filename: str,
        content_type: str,
        size_bytes: int | None = None,
    ) -> UploadUrlResponse:
        """Issue a presigned PUT URL and create a ``pending`` record for it.

        Args:
            filename: Client filename, used for the object name.
            content_type: MIME type, decides the kind and folder.
            size_bytes: Declared size, checked against the limit when given.

        Returns:
            Upload URL, object name, asset id and expiry.

        Raises:
            UploadTooLarge: If the declared size exceeds the limit.
            StorageUnavailable: If the URL could not be signed.
        """
        max_bytes = self._storage_settings.max_upload_size_bytes
        if size_bytes is not None and size_bytes > max_bytes:
            raise UploadTooLarge(size_bytes, max_bytes)

        kind = MediaKind.from_content_type(content_type)
        object_name = ObjectName.generate(kind, filename).value
        expiry = self._storage_settings.presigned_url_expiry_seconds

        try:
            upload_url = await self._storage.issue_upload_url(
                object_name, expiry, EndpointKind.PUBLIC
            )
        except StorageError as e:
            raise self._unavailable(e) from e

        asset = MediaAsset(
            object_name=object_name,
            kind=kind,
            filename=filename,
            content_type=content_type,
            size_bytes=size_bytes,
        )
        slot = UploadSlot(
            object_name=object_name,
            upload_url=upload_url,
            expires_at=asset.created_at + timedelta(seconds=expiry),
            expires_in=expiry,
            asset_id=asset.id,
        )
        asset = asset.model_copy(update={"upload_expires_at": slot.expires_at})
        await self._document_db.insert(self._collection, asset.to_document())

        self._logger.info(
            "Issued upload slot",
            extra={"asset_id": asset.id, "object_name": object_name, "kind": kind.value},
        )
        return UploadUrlResponse.model_validate(slot.model_dump())

    # Submission

    async def process_upload(
        self,
        object_name: str,
        passthrough: str | None = None,
    ) -> ProcessUploadResponse:
        """Submit an uploaded object for transcoding.

        The object name is the idempotency key: once a record has left
        ``pending`` a repeat call returns it unchanged instead of creating
        a second provider asset. Errored records need an explicit retry.

        Args:
            object_name: Object name returned with the upload slot.
            passthrough: Opaque value echoed back by the provider.
                Defaults to the asset id.

        Returns:
            Asset id, status and the provider's playback details.

        Raises:
            AssetNotFound: If no slot was issued for ``object_name``.
            AssetAlreadySubmitted: If this attempt already failed.
            UploadSlotExpired: If the object is missing and the slot expired.
            UploadMissing: If the object has not been uploaded yet.
            UploadTooLarge: If the stored object exceeds the limit.
            SubmissionFailure: If the provider rejected the submission.
            StorageUnavailable: If storage could not be reached.
        """
        asset = await self._find_by_object_name(object_name)

        with LogContext(asset_id=asset.id, object_name=object_name):
            if asset.status == AssetStatus.ERRORED:
                raise AssetAlreadySubmitted(asset.id, asset.status)
            if asset.status != AssetStatus.PENDING:
                self._logger.info(
                    "Upload already submitted, returning existing record",
                    extra={"status": asset.status.value},
                )
                return self._process_response(asset)
            if asset.source == AssetSource.DIRECT:
                raise UploadMissing(object_name)

            stored = await self._verify_object(asset)

            if asset.kind.is_transcoded and not self._transcoding.is_configured:
                # Leave the record pending so it can be processed once configured
                raise SubmissionFailure(asset.id, "Transcoding credentials are not configured")

            claimed = asset.transition_to(
                AssetStatus.SUBMITTING,
                size_bytes=stored.size_bytes,
                passthrough=passthrough or asset.passthrough or asset.id,
            )
            if not await self._save(claimed, expected=AssetStatus.PENDING):
                return await self._lost_claim(asset.id)

            if not asset.kind.is_transcoded:
                ready = claimed.transition_to(AssetStatus.READY)
                await self._save(ready, expected=AssetStatus.SUBMITTING)
                self._logger.info("Stored non-transcoded upload")
                return self._process_response(ready)

            submitted = await self._submit(claimed)
            return self._process_response(submitted)

    async def _verify_object(self, asset: MediaAsset) -> ObjectMetadata:
        try:
            stored = await self._storage.stat(asset.object_name)
        except StorageError as e:
            raise self._unavailable(e) from e

        if stored is None:
            expires_at = asset.upload_expires_at
            if expires_at is not None and datetime.now(UTC) >= expires_at:
                raise UploadSlotExpired(asset.object_name, expires_at)
            raise UploadMissing(asset.object_name)

        max_bytes = self._storage_settings.max_upload_size_bytes
        if stored.size_bytes > max_bytes:
            raise UploadTooLarge(stored.size_bytes, max_bytes)
        return stored

    async def _lost_claim(self, asset_id: str) -> ProcessUploadResponse:
        """Another request claimed the record first; report what it did."""
        current = await self._load(asset_id)
        self._logger.info(
            "Concurrent submission detected, not submitting again",
            extra={"status": current.status.value},
        )
        if current.status == AssetStatus.ERRORED:
            raise AssetAlreadySubmitted(current.id, current.status)
        return self._process_response(current)

    @log_exceptions(message="Submission to transcoding provider failed")
    async def _submit(self, claimed: MediaAsset) -> MediaAsset:
        fetch_endpoint = EndpointKind(self._storage_settings.provider_fetch_endpoint)
        try:
            source_url = await self._storage.issue_download_url(
                claimed.object_name,
                self._storage_settings.provider_fetch_url_expiry_seconds,
                fetch_endpoint,
            )
        except StorageError as e:
            await self._save(claimed.mark_failed(e.message), expected=AssetStatus.SUBMITTING)
            raise self._unavailable(e) from e

        policy = SubmissionPolicy(
            playback_policy=self._transcoding_settings.playback_policy,
            mp4_support=self._transcoding_settings.mp4_support,
            passthrough=claimed.passthrough,
        )
        try:
            provider_asset = await self._transcoding.submit_from_url(source_url, policy)
        except TranscodingProviderError as e:
            await self._save(claimed.mark_failed(e.message), expected=AssetStatus.SUBMITTING)
            raise SubmissionFailure(claimed.id, e.message, e.status_code) from e

        submitted = claimed.mark_submitted(provider_asset)
        await self._save(submitted, expected=AssetStatus.SUBMITTING)
        self._logger.info(
            "Submitted upload for transcoding",
            extra={
                "provider_asset_id": submitted.provider_asset_id,
                "provider_status": submitted.provider_status,
            },
        )
        return submitted

    # Direct-to-provider uploads

    async def create_direct_upload(
        self,
        filename: str = "",
        content_type: str = "video/*",
        cors_origin: str | None = None,
        passthrough: str | None = None,
    ) -> DirectUploadResponse:
        """Create a provider-hosted upload URL, skipping object storage.

        Raises:
            SubmissionFailure: If the provider refused to create the upload.
        """
        asset_id = str(uuid4())
        policy = SubmissionPolicy(
            playback_policy=self._transcoding_settings.playback_policy,
            mp4_support=self._transcoding_settings.mp4_support,
            passthrough=passthrough or asset_id,
        )
        try:
            upload = await self._transcoding.create_direct_upload(
                policy, cors_origin or self._transcoding_settings.cors_origin
            )
        except TranscodingProviderError as e:
            raise SubmissionFailure(asset_id, e.message, e.status_code) from e

        kind = MediaKind.from_content_type(content_type)
        asset = MediaAsset(
            id=asset_id,
            object_name=ObjectName.for_direct_upload(upload.upload_id).value,
            kind=kind if kind.is_transcoded else MediaKind.VIDEO,
            source=AssetSource.DIRECT,
            filename=filename,
            content_type=content_type,
            passthrough=policy.passthrough,
            provider_upload_id=upload.upload_id,
        )
        await self._document_db.insert(self._collection, asset.to_document())

        self._logger.info(
            "Created direct upload",
            extra={"asset_id": asset_id, "upload_id": upload.upload_id},
        )
        return DirectUploadResponse(
            upload_id=upload.upload_id,
            upload_url=upload.upload_url,
            asset_id=asset_id,
        )

    async def get_direct_upload_status(self, upload_id: str) -> UploadStatusResponse:
        """Check a direct upload and link the provider asset once it exists.

        Raises:
            AssetNotFound: If no record was created for ``upload_id``.
            SubmissionFailure: If the provider could not be queried.
        """
        doc = await self._document_db.find_one(
            self._collection, {"provider_upload_id": upload_id}
        )
        if doc is None:
            raise AssetNotFound(upload_id)
        asset = MediaAsset.model_validate(doc)

        with LogContext(asset_id=asset.id, upload_id=upload_id):
            try:
                upload = await self._transcoding.get_upload_status(upload_id)
                if upload.provider_asset_id and asset.status == AssetStatus.PENDING:
                    snapshot = await self._transcoding.get_asset(upload.provider_asset_id)
                    asset = await self._write(asset, asset.apply_provider_snapshot(snapshot))
            except TranscodingProviderError as e:
                raise SubmissionFailure(asset.id, e.message, e.status_code) from e

            if upload.is_failed and asset.status == AssetStatus.PENDING:
                reason = upload.error or f"Direct upload {upload.status}"
                asset = await self._write(asset, asset.mark_failed(reason))

        hls_url, transcoding = self._playback(asset) if asset.provider_asset_id else (None, None)
        return UploadStatusResponse(
            upload_id=upload_id,
            status=upload.status,
            asset_id=asset.id,
            asset_status=asset.status,
            provider_asset_id=asset.provider_asset_id or upload.provider_asset_id,
            error=upload.error,
            hls_url=hls_url,
            transcoding=transcoding,
        )

    # Reads and refresh

    async def get_asset(self, asset_id: str) -> AssetView:
        """Read an asset, refreshing provider status while it is not terminal.

        A failed refresh does not fail the read; its message is returned in
        ``refresh_error`` next to the last stored state.

        Raises:
            AssetNotFound: If the asset does not exist.
        """
        asset = await self._load(asset_id)
        refresh_error: str | None = None

        if not asset.is_terminal and asset.provider_asset_id:
            try:
                asset = await self.refresh_asset(asset)
            except TranscodingProviderError as e:
                refresh_error = e.message
                self._logger.warning(
                    "Could not refresh provider status",
                    extra={"asset_id": asset.id, "error": e.message},
                )

        return AssetView(asset=self.to_dto(asset), refresh_error=refresh_error)

    async def refresh_asset(self, asset: MediaAsset) -> MediaAsset:
        """Pull the provider's current status into the record.

        Raises:
            TranscodingProviderError: If the provider could not be queried.
        """
        if asset.is_terminal or not asset.provider_asset_id:
            return asset

        snapshot = await self._transcoding.get_asset(asset.provider_asset_id)
        updated = asset.apply_provider_snapshot(snapshot)

        if snapshot.is_errored:
            failure = ProviderTerminalError(asset.id, snapshot.status, updated.error_message)
            self._logger.warning(str(failure), extra={"asset_id": asset.id})
        elif updated.status == AssetStatus.PROCESSING and self._is_stalled(updated):
            timeout = self._settings.processing.stall_timeout_seconds
            updated = updated.mark_failed(
                f"Processing stalled: no ready status after {timeout} seconds"
            )
            self._logger.warning("Marked stalled asset as errored", extra={"asset_id": asset.id})

        return await self._write(asset, updated)

    async def refresh_processing(self, limit: int = 50) -> int:
        """Refresh up to ``limit`` processing assets, oldest first.

        Returns:
            Number of assets whose refresh succeeded.
        """
        docs = await self._document_db.find(
            self._collection,
            {"status": AssetStatus.PROCESSING.value},
            limit=limit,
            sort=[("updated_at", 1)],
        )
        refreshed = 0
        for doc in docs:
            asset = MediaAsset.model_validate(doc)
            try:
                await self.refresh_asset(asset)
            except TranscodingProviderError as e:
                self._logger.warning(
                    "Background refresh failed",
                    extra={"asset_id": asset.id, "error": e.message},
                )
                continue
            refreshed += 1
        return refreshed

    def _is_stalled(self, asset: MediaAsset) -> bool:
        timeout = self._settings.processing.stall_timeout_seconds
        if timeout is None:
            return False
        age = asset.processing_age_seconds()
        return age is not None and age > timeout

    async def list_assets(
        self,
        kind: MediaKind | None = None,
        status: AssetStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> AssetListResponse:
        """List assets, newest first. Stored status only; nothing is refreshed."""
        filters: dict[str, Any] = {}
        if kind is not None:
            filters["kind"] = kind.value
        if status is not None:
            filters["status"] = status.value

        docs = await self._document_db.find(
            self._collection,
            filters,
            skip=(page - 1) * limit,
            limit=limit,
            sort=[("created_at", -1)],
        )
        total = await self._document_db.count(self._collection, filters)
        return AssetListResponse(
            items=[self.to_dto(MediaAsset.model_validate(doc)) for doc in docs],
            total=total,
            page=page,
            limit=limit,
        )

    # Removal and retry

    async def delete_asset(self, asset_id: str) -> None:
        """Delete the provider asset, the stored object and the record.

        A provider asset that is already gone is not an error.

        Raises:
            AssetNotFound: If the asset does not exist.
            TranscodingProviderError: If the provider refused the delete.
            StorageUnavailable: If the object could not be deleted.
        """
        asset = await self._load(asset_id)

        with LogContext(asset_id=asset.id, object_name=asset.object_name):
            if asset.provider_asset_id:
                try:
                    await self._transcoding.delete_asset(asset.provider_asset_id)
                except TranscodingProviderError as e:
                    if not e.is_not_found:
                        raise
                    self._logger.info("Provider asset already deleted")

            if asset.source == AssetSource.STORAGE:
                try:
                    await self._storage.delete(asset.object_name)
                except StorageError as e:
                    raise self._unavailable(e) from e

            await self._document_db.delete(self._collection, asset.id)
            self._logger.info("Deleted media asset")

    async def retry_asset(self, asset_id: str) -> UploadUrlResponse:
        """Discard an errored attempt and issue a fresh upload slot for the same file.

        Raises:
            AssetNotFound: If the asset does not exist.
            InvalidStatusTransition: If the asset is not errored.
        """
        asset = await self._load(asset_id)
        if asset.status != AssetStatus.ERRORED:
            raise InvalidStatusTransition(asset.id, asset.status, AssetStatus.PENDING)

        await self.delete_asset(asset.id)
        self._logger.info("Retrying errored asset", extra={"asset_id": asset.id})
        return await self.create_upload_slot(
            asset.filename or asset.object_name.rsplit("/", 1)[-1],
            asset.content_type,
            asset.size_bytes,
        )

    # Provider notifications

    async def handle_provider_event(
        self,
        event_type: str,
        object_id: str,
    ) -> MediaAsset | None:
        """Treat a provider notification as a hint to refresh.

        The status is always re-read from the provider, so duplicate or
        out-of-order deliveries cannot move a record backwards.

        Args:
            event_type: Provider event name, e.g. ``video.asset.ready``.
            object_id: Asset id for asset events, upload id for upload events.

        Returns:
            The refreshed asset, or None if the event was not for a known asset.
        """
        if event_type.startswith("video.upload."):
            try:
                status = await self.get_direct_upload_status(object_id)
            except AssetNotFound:
                self._logger.info("Ignoring event for unknown upload", extra={"upload_id": object_id})
                return None
            return await self._load(status.asset_id)

        if not event_type.startswith("video.asset."):
            self._logger.debug("Ignoring provider event", extra={"event_type": event_type})
            return None

        doc = await self._document_db.find_one(
            self._collection, {"provider_asset_id": object_id}
        )
        if doc is None:
            self._logger.info(
                "Ignoring event for unknown provider asset",
                extra={"event_type": event_type, "provider_asset_id": object_id},
            )
            return None

        return await self.refresh_asset(MediaAsset.model_validate(doc))

    # Persistence helpers

    async def _load(self, asset_id: str) -> MediaAsset:
        doc = await self._document_db.find_by_id(self._collection, asset_id)
        if doc is None:
            raise AssetNotFound(asset_id)
        return MediaAsset.model_validate(doc)

    async def _find_by_object_name(self, object_name: str) -> MediaAsset:
        doc = await self._document_db.find_one(self._collection, {"object_name": object_name})
        if doc is None:
            raise AssetNotFound(object_name)
        return MediaAsset.model_validate(doc)

    async def _save(self, asset: MediaAsset, expected: AssetStatus) -> bool:
        """Write ``asset`` only if the stored status is still ``expected``."""
        return await self._document_db.update(
            self._collection,
            asset.id,
            asset.to_document(),
            conditions={"status": expected.value},
        )

    async def _write(self, previous: MediaAsset, updated: MediaAsset) -> MediaAsset:
        """Conditional write; on conflict return whatever won."""
        if await self._save(updated, expected=previous.status):
            return updated
        current = await self._load(previous.id)
        self._logger.debug(
            "Status write lost to a concurrent update",
            extra={
                "asset_id": previous.id,
                "attempted": updated.status.value,
                "stored": current.status.value,
            },
        )
        return current

    def _unavailable(self, error: StorageError) -> StorageUnavailable:
        endpoint = error.endpoint or self._storage.endpoint_url(EndpointKind.INTERNAL)
        return StorageUnavailable(endpoint, error.message)

    # Presentation

    def to_dto(self, asset: MediaAsset) -> MediaAssetDTO:
        """Build the client view, deriving playback URLs once they are usable."""
        hls_url = thumbnail_url = preview_url = public_url = None
        if asset.is_ready:
            if asset.kind.is_transcoded and asset.playback_id:
                hls_url = self._transcoding.stream_manifest_url(asset.playback_id)
                if asset.kind == MediaKind.VIDEO:
                    thumbnail_url = self._transcoding.thumbnail_url(asset.playback_id)
                    preview_url = self._transcoding.preview_clip_url(asset.playback_id)
            elif not asset.kind.is_transcoded:
                public_url = self._storage.public_url(asset.object_name)

        return MediaAssetDTO(
            id=asset.id,
            object_name=asset.object_name,
            kind=asset.kind,
            source=asset.source,
            status=asset.status,
            provider_status=asset.provider_status,
            provider_asset_id=asset.provider_asset_id,
            playback_id=asset.playback_id,
            hls_url=hls_url,
            thumbnail_url=thumbnail_url,
            preview_url=preview_url,
            public_url=public_url,
            duration_seconds=asset.duration_seconds,
            aspect_ratio=asset.aspect_ratio,
            max_resolution=asset.max_resolution,
            max_frame_rate=asset.max_frame_rate,
            filename=asset.filename,
            content_type=asset.content_type,
            size_bytes=asset.size_bytes,
            error_message=asset.error_message,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
            ready_at=asset.ready_at,
        )

    def _process_response(self, asset: MediaAsset) -> ProcessUploadResponse:
        if not asset.kind.is_transcoded:
            public_url = self._storage.public_url(asset.object_name) if asset.is_ready else None
            return ProcessUploadResponse(
                asset_id=asset.id,
                kind=asset.kind,
                status=asset.status,
                public_url=public_url,
            )

        hls_url, transcoding = self._playback(asset)
        return ProcessUploadResponse(
            asset_id=asset.id,
            kind=asset.kind,
            status=asset.status,
            hls_url=hls_url,
            transcoding=transcoding,
        )

    def _playback(self, asset: MediaAsset) -> tuple[str | None, TranscodingInfo]:
        """Stream URL and provider details, available as soon as a playback id is."""
        playback_id = asset.playback_id or None
        hls_url = self._transcoding.stream_manifest_url(playback_id) if playback_id else None
        thumbnail_url = None
        if playback_id and asset.kind == MediaKind.VIDEO:
            thumbnail_url = self._transcoding.thumbnail_url(playback_id)
        return hls_url, TranscodingInfo(
            provider_asset_id=asset.provider_asset_id,
            playback_id=playback_id,
            status=asset.provider_status,
            duration_seconds=asset.duration_seconds,
            thumbnail_url=thumbnail_url,
        )
