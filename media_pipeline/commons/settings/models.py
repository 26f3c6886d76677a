"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORTS = {"http": 80, "https": 443}


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "sda-media-pipeline"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class StorageEndpointSettings(BaseModel):
    """Connection details for one object storage endpoint."""

    host: str = "localhost"
    port: int = Field(default=9000, ge=1, le=65535)
    use_ssl: bool = False
    access_key: str = "minioadmin"
    secret_key: str = "minioadmin"

    @property
    def scheme(self) -> str:
        """URL scheme implied by the TLS flag."""
        return "https" if self.use_ssl else "http"

    @property
    def netloc(self) -> str:
        """Host with the port, omitting the scheme's default port."""
        if DEFAULT_PORTS[self.scheme] == self.port:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        """Endpoint URL as shown in diagnostics."""
        return f"{self.scheme}://{self.host}:{self.port}"


class ObjectStorageSettings(BaseModel):
    """Object storage settings (MinIO/S3).

    ``internal`` is used by this service; ``public`` is used when signing URLs
    for browsers and mobile clients that cannot reach the internal network.
    """

    provider: Literal["minio", "s3"] = "minio"
    internal: StorageEndpointSettings = Field(default_factory=StorageEndpointSettings)
    public: StorageEndpointSettings | None = None
    bucket: str = "sda-media"
    region: str = "us-east-1"
    public_prefix: str = "public/"
    presigned_url_expiry_seconds: int = Field(default=3600, ge=1, le=604800)
    provider_fetch_url_expiry_seconds: int = Field(default=86400, ge=1, le=604800)
    # Endpoint the transcoding provider downloads sources through
    provider_fetch_endpoint: Literal["internal", "public"] = "internal"
    max_upload_size_bytes: int = Field(default=2 * 1024 * 1024 * 1024, ge=1)

    @property
    def public_endpoint(self) -> StorageEndpointSettings:
        """Public endpoint, falling back to the internal one."""
        return self.public or self.internal


class TranscodingSettings(BaseModel):
    """Transcoding provider settings (Mux)."""

    provider: Literal["mux"] = "mux"
    token_id: str = ""
    token_secret: str = ""
    api_base_url: str = "https://api.mux.com"
    stream_base_url: str = "https://stream.mux.com"
    image_base_url: str = "https://image.mux.com"
    playback_policy: Literal["public", "signed"] = "public"
    mp4_support: Literal["none", "standard"] = "none"
    cors_origin: str = "*"
    timeout_seconds: float = 30.0


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    media_assets: str = "media_assets"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "sda_media"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class ProcessingSettings(BaseModel):
    """Media processing settings."""

    stall_timeout_seconds: int | None = Field(default=None, ge=1)
    poll_interval_seconds: float = Field(default=0.0, ge=0)
    poll_batch_size: int = Field(default=50, ge=1, le=1000)


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    object_storage: ObjectStorageSettings = Field(
        default_factory=ObjectStorageSettings
    )
    transcoding: TranscodingSettings = Field(default_factory=TranscodingSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MEDIA_PIPELINE__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
