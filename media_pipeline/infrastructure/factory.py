"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from media_pipeline.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from media_pipeline.commons.infrastructure.storage import MinioObjectStorage, ObjectStorageBase
from media_pipeline.commons.settings.models import Settings
from media_pipeline.commons.telemetry import get_logger
from media_pipeline.infrastructure.transcoding import (
    MuxTranscodingClient,
    TranscodingProviderBase,
)

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches one instance of each for the life of the process.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_object_storage(self) -> ObjectStorageBase:
        """Get the object storage gateway.

        Returns:
            MinIO gateway with internal and public endpoints.
        """
        if "object_storage" not in self._instances:
            storage_settings = self._settings.object_storage
            self._instances["object_storage"] = MinioObjectStorage(
                bucket=storage_settings.bucket,
                internal=storage_settings.internal,
                public=storage_settings.public,
                region=storage_settings.region,
                public_prefix=storage_settings.public_prefix,
            )
        return cast("ObjectStorageBase", self._instances["object_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_transcoding_provider(self) -> TranscodingProviderBase:
        """Get the transcoding provider client.

        Returns:
            Configured transcoding provider.

        Raises:
            ValueError: If provider is not supported.
        """
        if "transcoding" not in self._instances:
            transcoding = self._settings.transcoding
            if transcoding.provider != "mux":
                raise ValueError(f"Unsupported transcoding provider: {transcoding.provider}")
            self._instances["transcoding"] = MuxTranscodingClient(
                token_id=transcoding.token_id,
                token_secret=transcoding.token_secret,
                api_base_url=transcoding.api_base_url,
                stream_base_url=transcoding.stream_base_url,
                image_base_url=transcoding.image_base_url,
                timeout_seconds=transcoding.timeout_seconds,
            )
        return cast("TranscodingProviderBase", self._instances["transcoding"])

    async def close_all(self) -> None:
        """Close all service connections.

        A failing close is logged and does not stop the others from closing.
        """
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.warning("Failed to close %s", name, exc_info=True)

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
