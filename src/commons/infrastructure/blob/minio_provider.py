"""MinIO implementation of blob storage."""

import asyncio
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

from minio import Minio
from minio.error import S3Error

from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)
from src.domain.exceptions import BlobNotFoundError, ObjectStoreError

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchBucket"})


def _translate(error: S3Error, bucket: str, path: str) -> ObjectStoreError:
    if error.code in _MISSING_CODES:
        return BlobNotFoundError(bucket, path)
    return ObjectStoreError(bucket, path, f"{error.code}: {error.message}")


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with both MinIO (local development) and AWS S3 (production).
    The SDK is blocking, so every call runs in the default executor.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._secure = secure

    async def download_to_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
    ) -> Path:
        """Download a blob to a local file."""
        loop = asyncio.get_event_loop()

        def _download() -> None:
            try:
                self._client.fget_object(bucket, path, str(local_path))
            except S3Error as e:
                raise _translate(e, bucket, path) from e
            except OSError as e:
                raise ObjectStoreError(bucket, path, str(e)) from e

        local_path.parent.mkdir(parents=True, exist_ok=True)
        await loop.run_in_executor(None, _download)
        return local_path

    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file to storage."""
        loop = asyncio.get_event_loop()

        def _upload() -> BlobMetadata:
            try:
                result = self._client.fput_object(
                    bucket_name=bucket,
                    object_name=path,
                    file_path=str(local_path),
                    content_type=content_type,
                )
            except S3Error as e:
                raise _translate(e, bucket, path) from e
            except OSError as e:
                raise ObjectStoreError(bucket, path, str(e)) from e
            return BlobMetadata(
                path=path,
                size_bytes=local_path.stat().st_size,
                content_type=content_type,
                created_at=datetime.now(UTC),
                etag=result.etag or "",
            )

        return await loop.run_in_executor(None, _upload)

    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Sign a read URL for direct access."""
        loop = asyncio.get_event_loop()

        def _presign() -> str:
            try:
                url = self._client.presigned_get_object(
                    bucket_name=bucket,
                    object_name=path,
                    expires=timedelta(seconds=expiry_seconds),
                )
            except S3Error as e:
                raise _translate(e, bucket, path) from e
            except ValueError as e:
                # Raised for an expiry outside 1s..7d
                raise ObjectStoreError(bucket, path, str(e)) from e
            return str(url)

        return await loop.run_in_executor(None, _presign)

    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""
        loop = asyncio.get_event_loop()

        def _stat() -> bool:
            try:
                self._client.stat_object(bucket, path)
                return True
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    return False
                raise _translate(e, bucket, path) from e

        return await loop.run_in_executor(None, _stat)

    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob from storage."""
        loop = asyncio.get_event_loop()

        if not await self.exists(bucket, path):
            return False

        def _delete() -> None:
            try:
                self._client.remove_object(bucket, path)
            except S3Error as e:
                raise _translate(e, bucket, path) from e

        await loop.run_in_executor(None, _delete)
        return True

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._client.list_buckets)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
