"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Abstract base class for blob storage operations.

    Implementations must translate SDK failures into ``ObjectStoreError``
    and a missing object into ``BlobNotFoundError``.
    """

    @abstractmethod
    async def download_to_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
    ) -> Path:
        """Download a blob to a local file without buffering it in memory.

        Args:
            bucket: Source bucket name.
            path: Path within the bucket.
            local_path: Local filesystem path to write to.

        Returns:
            The local path written.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
            ObjectStoreError: On any other storage failure.
        """

    @abstractmethod
    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file to storage.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            local_path: File to upload.
            content_type: MIME type of the content.

        Returns:
            Metadata of the uploaded blob.

        Raises:
            ObjectStoreError: If the upload fails.
        """

    @abstractmethod
    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Sign a read URL for direct access.

        Args:
            bucket: Bucket name.
            path: Path within the bucket.
            expiry_seconds: URL validity duration.

        Returns:
            Presigned GET URL.

        Raises:
            ObjectStoreError: If the URL cannot be signed.
        """

    @abstractmethod
    async def exists(self, bucket: str, path: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if it didn't exist.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""
