"""MinIO implementation of the object storage gateway."""

import asyncio
import functools
import io
import json
import time
from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from typing import Any, BinaryIO, TypeVar
from urllib.parse import quote

from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError as TransportError

from media_pipeline.commons.infrastructure.storage.base import (
    EndpointKind,
    HealthStatus,
    ObjectMetadata,
    ObjectStorageBase,
    StorageError,
)
from media_pipeline.commons.settings.models import StorageEndpointSettings
from media_pipeline.commons.telemetry import get_logger

T = TypeVar("T")

_MISSING_CODES = {"NoSuchKey", "NoSuchObject", "NotFound"}


def public_read_policy(bucket: str, prefix: str) -> dict[str, Any]:
    """Bucket policy granting anonymous GetObject on ``prefix`` only."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket}/{prefix}*"],
            }
        ],
    }


class MinioObjectStorage(ObjectStorageBase):
    """MinIO/S3 gateway with separate internal and public endpoints.

    Each endpoint gets its own client because a presigned URL's signature
    covers the host it was generated for. The region is fixed so presigning
    never needs a network round trip.
    """

    def __init__(
        self,
        bucket: str,
        internal: StorageEndpointSettings,
        public: StorageEndpointSettings | None = None,
        region: str = "us-east-1",
        public_prefix: str = "public/",
    ) -> None:
        """Initialize MinIO clients.

        Args:
            bucket: Bucket holding every object.
            internal: Endpoint used by this service.
            public: Endpoint used for client-facing URLs. Defaults to internal.
            region: Bucket region, also used for offline signing.
            public_prefix: Key prefix readable without credentials.
        """
        self._bucket = bucket
        self._region = region
        self._public_prefix = public_prefix
        self._endpoints = {
            EndpointKind.INTERNAL: internal,
            EndpointKind.PUBLIC: public or internal,
        }
        self._clients = {
            kind: self._build_client(settings) for kind, settings in self._endpoints.items()
        }
        self._logger = get_logger(__name__)

    def _build_client(self, endpoint: StorageEndpointSettings) -> Minio:
        return Minio(
            endpoint=endpoint.netloc,
            access_key=endpoint.access_key,
            secret_key=endpoint.secret_key,
            secure=endpoint.use_ssl,
            region=self._region,
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    def endpoint_url(self, endpoint: EndpointKind = EndpointKind.INTERNAL) -> str:
        return self._endpoints[endpoint].url

    async def _run(
        self,
        fn: Callable[..., T],
        *args: Any,
        object_name: str | None = None,
        endpoint: EndpointKind = EndpointKind.INTERNAL,
    ) -> T:
        """Run a blocking SDK call in the default executor, typing its errors."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except (MinioException, TransportError, OSError) as e:
            target = f"{self._bucket}/{object_name}" if object_name else self._bucket
            raise StorageError(
                f"Object storage request failed for {target}: {e}",
                object_name=object_name,
                endpoint=self.endpoint_url(endpoint),
            ) from e

    async def initialize(self) -> bool:
        client = self._clients[EndpointKind.INTERNAL]

        def _ensure_bucket() -> bool:
            if client.bucket_exists(bucket_name=self._bucket):
                return False
            client.make_bucket(bucket_name=self._bucket, location=self._region)
            policy = public_read_policy(self._bucket, self._public_prefix)
            client.set_bucket_policy(bucket_name=self._bucket, policy=json.dumps(policy))
            return True

        created = await self._run(_ensure_bucket)
        if created:
            self._logger.info(
                "Created bucket with public read prefix",
                extra={"bucket": self._bucket, "public_prefix": self._public_prefix},
            )
        return created

    async def issue_upload_url(
        self,
        object_name: str,
        expiry_seconds: int = 3600,
        endpoint: EndpointKind = EndpointKind.PUBLIC,
    ) -> str:
        client = self._clients[endpoint]
        presign = functools.partial(
            client.presigned_put_object,
            bucket_name=self._bucket,
            object_name=object_name,
            expires=timedelta(seconds=expiry_seconds),
        )
        url = await self._run(presign, object_name=object_name, endpoint=endpoint)
        return str(url)

    async def issue_download_url(
        self,
        object_name: str,
        expiry_seconds: int = 3600,
        endpoint: EndpointKind = EndpointKind.PUBLIC,
    ) -> str:
        client = self._clients[endpoint]
        presign = functools.partial(
            client.presigned_get_object,
            bucket_name=self._bucket,
            object_name=object_name,
            expires=timedelta(seconds=expiry_seconds),
        )
        url = await self._run(presign, object_name=object_name, endpoint=endpoint)
        return str(url)

    def public_url(self, object_name: str) -> str:
        endpoint = self._endpoints[EndpointKind.PUBLIC]
        key = quote(object_name, safe="/")
        return f"{endpoint.scheme}://{endpoint.netloc}/{self._bucket}/{key}"

    async def put(
        self,
        object_name: str,
        data: BinaryIO | bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> ObjectMetadata:
        if isinstance(data, bytes):
            data_io: BinaryIO = io.BytesIO(data)
            length = len(data)
        else:
            data.seek(0, io.SEEK_END)
            length = data.tell()
            data.seek(0)
            data_io = data

        client = self._clients[EndpointKind.INTERNAL]

        def _put() -> None:
            client.put_object(
                bucket_name=self._bucket,
                object_name=object_name,
                data=data_io,
                length=length,
                content_type=content_type,
                metadata=metadata,
            )

        await self._run(_put, object_name=object_name)
        return ObjectMetadata(
            object_name=object_name,
            size_bytes=length,
            content_type=content_type,
        )

    async def stat(self, object_name: str) -> ObjectMetadata | None:
        client = self._clients[EndpointKind.INTERNAL]

        def _stat() -> ObjectMetadata | None:
            try:
                stat = client.stat_object(bucket_name=self._bucket, object_name=object_name)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    return None
                raise
            return ObjectMetadata(
                object_name=object_name,
                size_bytes=stat.size or 0,
                content_type=stat.content_type or "application/octet-stream",
                last_modified=stat.last_modified,
                etag=stat.etag or "",
            )

        return await self._run(_stat, object_name=object_name)

    async def delete(self, object_name: str) -> None:
        client = self._clients[EndpointKind.INTERNAL]
        remove = functools.partial(
            client.remove_object, bucket_name=self._bucket, object_name=object_name
        )
        await self._run(remove, object_name=object_name)

    async def iter_objects(self, prefix: str = "") -> AsyncIterator[str]:  # type: ignore[override]
        client = self._clients[EndpointKind.INTERNAL]

        def _start() -> Any:
            return iter(
                client.list_objects(bucket_name=self._bucket, prefix=prefix, recursive=True)
            )

        listing = await self._run(_start)
        while True:
            obj = await self._run(next, listing, None)
            if obj is None:
                return
            if obj.object_name:
                yield obj.object_name

    async def health_check(self) -> HealthStatus:
        endpoint = self.endpoint_url(EndpointKind.INTERNAL)
        client = self._clients[EndpointKind.INTERNAL]
        start = time.perf_counter()
        try:
            await self._run(client.list_buckets)
        except StorageError as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MinIO connection failed: {endpoint}",
                details={"endpoint": endpoint, "bucket": self._bucket, "error": str(e.__cause__ or e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MinIO is healthy",
            details={"endpoint": endpoint, "bucket": self._bucket},
        )
