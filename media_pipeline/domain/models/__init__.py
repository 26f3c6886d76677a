"""Domain models."""

from media_pipeline.domain.models.media_asset import (
    AssetSource,
    AssetStatus,
    MediaAsset,
    MediaKind,
    ProviderAsset,
)
from media_pipeline.domain.models.upload_slot import UploadSlot

__all__ = [
    # Media asset
    "MediaAsset",
    "MediaKind",
    "AssetSource",
    "AssetStatus",
    "ProviderAsset",
    # Upload
    "UploadSlot",
]
