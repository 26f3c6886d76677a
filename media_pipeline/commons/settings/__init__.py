"""Settings management module."""

from media_pipeline.commons.settings.loader import (
    ENV_ALIASES,
    SettingsLoader,
    get_settings,
    reset_settings,
)
from media_pipeline.commons.settings.models import (
    AppSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    ObjectStorageSettings,
    ProcessingSettings,
    ServerSettings,
    Settings,
    StorageEndpointSettings,
    TelemetrySettings,
    TranscodingSettings,
)

__all__ = [
    # Loader
    "ENV_ALIASES",
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "ObjectStorageSettings",
    "StorageEndpointSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Providers
    "TranscodingSettings",
    # Processing
    "ProcessingSettings",
    # Telemetry
    "TelemetrySettings",
]
