"""In-memory stand-ins for the storage, media and speech clients."""

import copy
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    HealthStatus,
)
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.domain.exceptions import BlobNotFoundError, TranscodeError
from src.infrastructure.transcription.base import (
    LongRunningOperation,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionResult,
    TranscriptionServiceBase,
)
from src.infrastructure.video.base import MediaTranscoderBase

# =============================================================================
# In-memory clients
# =============================================================================


def _matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB filter syntax the stores use."""
    for key, condition in filters.items():
        value = document.get(key)
        if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$lt" and (value is None or not value < operand):
                    return False
                if op == "$elemMatch" and not any(
                    _matches(element, operand) for element in value or []
                ):
                    return False
        elif value != condition:
            return False
    return True


class FakeDocumentDB(DocumentDBBase):
    """Dict-backed document store with compare-and-swap semantics.

    ``before_update_if`` runs ahead of every conditional write, which lets a
    test change the document the way a concurrent run would.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.update_if_calls: list[dict[str, Any]] = []
        self.before_update_if: Any = None
        self.fail_update_if: Exception | None = None
        self.closed = False

    def seed(self, collection: str, document: dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[document["id"]] = copy.deepcopy(
            document
        )

    def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        return self.collections.get(collection, {}).get(document_id)

    async def insert(self, collection: str, document: dict[str, Any]) -> str:
        self.seed(collection, document)
        return str(document["id"])

    async def find_by_id(
        self, collection: str, document_id: str
    ) -> dict[str, Any] | None:
        document = self.get(collection, document_id)
        return copy.deepcopy(document) if document is not None else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        matching = [
            copy.deepcopy(doc)
            for doc in self.collections.get(collection, {}).values()
            if _matches(doc, filters)
        ]
        return matching[skip : skip + limit]

    async def update(
        self, collection: str, document_id: str, updates: dict[str, Any]
    ) -> bool:
        document = self.get(collection, document_id)
        if document is None:
            return False
        document.update(copy.deepcopy(updates))
        return True

    async def update_if(
        self,
        collection: str,
        document_id: str,
        expected: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        self.update_if_calls.append(
            {"collection": collection, "id": document_id, "updates": updates}
        )
        if self.before_update_if is not None:
            self.before_update_if(self, collection, document_id)
        if self.fail_update_if is not None:
            raise self.fail_update_if

        document = self.get(collection, document_id)
        if document is None:
            return False
        if any(document.get(k) != v for k, v in expected.items()):
            return False
        document.update(copy.deepcopy(updates))
        return True

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1)

    async def close(self) -> None:
        self.closed = True


class FakeBlobStorage(BlobStorageBase):
    """Bucket contents held as bytes keyed by ``(bucket, path)``."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: list[dict[str, Any]] = []
        self.download_error: Exception | None = None
        self.upload_error: Exception | None = None
        self.presign_error: Exception | None = None
        self.downloaded_to: list[Path] = []

    async def download_to_file(self, bucket: str, path: str, local_path: Path) -> Path:
        if self.download_error is not None:
            raise self.download_error
        if (bucket, path) not in self.objects:
            raise BlobNotFoundError(bucket, path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(self.objects[(bucket, path)])
        self.downloaded_to.append(local_path)
        return local_path

    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        if self.upload_error is not None:
            raise self.upload_error
        data = local_path.read_bytes()
        self.objects[(bucket, path)] = data
        self.uploads.append(
            {"bucket": bucket, "path": path, "content_type": content_type}
        )
        return BlobMetadata(
            path=path,
            size_bytes=len(data),
            content_type=content_type,
            created_at=datetime.now(UTC),
            etag="etag",
        )

    async def generate_presigned_url(
        self, bucket: str, path: str, expiry_seconds: int = 3600
    ) -> str:
        if self.presign_error is not None:
            raise self.presign_error
        return f"https://storage.test/{bucket}/{path}?X-Amz-Expires={expiry_seconds}"

    async def exists(self, bucket: str, path: str) -> bool:
        return (bucket, path) in self.objects

    async def delete(self, bucket: str, path: str) -> bool:
        return self.objects.pop((bucket, path), None) is not None

    async def health_check(self) -> HealthStatus:
        return HealthStatus(healthy=True, latency_ms=0.1)


class FakeTranscoder(MediaTranscoderBase):
    """Writes placeholder media files instead of running ffmpeg."""

    def __init__(self, duration: float = 12.5, audio_bytes: bytes = b"\x00" * 3200):
        self.duration = duration
        self.audio_bytes = audio_bytes
        self.fail_on: str | None = None
        self.calls: list[str] = []
        self.outputs: list[Path] = []

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_on == operation:
            raise TranscodeError(operation, "input.webm", "Invalid data found")

    async def extract_audio(
        self, video_path: Path, output_path: Path | None = None
    ) -> Path:
        self._maybe_fail("extract_audio")
        output_path = output_path or video_path.with_suffix(".wav")
        output_path.write_bytes(self.audio_bytes)
        self.outputs.append(output_path)
        return output_path

    async def extract_thumbnail(
        self,
        video_path: Path,
        timestamp_fraction: float = 0.5,
        output_path: Path | None = None,
        size: tuple[int, int] = (320, 180),
        duration_seconds: float | None = None,
    ) -> Path:
        self._maybe_fail("extract_thumbnail")
        output_path = output_path or video_path.with_suffix(".jpg")
        output_path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
        self.outputs.append(output_path)
        return output_path

    async def probe_duration(self, video_path: Path) -> float:
        self._maybe_fail("probe_duration")
        return self.duration


class FakeOperation(LongRunningOperation):
    """Long-running job that finishes after ``polls_until_done`` checks."""

    def __init__(
        self,
        results: list[RecognitionResult],
        polls_until_done: int | None = 0,
        name: str = "operations/123",
    ) -> None:
        self._results = results
        self._polls_until_done = polls_until_done
        self._name = name
        self.polls = 0

    @property
    def name(self) -> str:
        return self._name

    async def done(self) -> bool:
        self.polls += 1
        if self._polls_until_done is None:
            return False
        return self.polls > self._polls_until_done

    async def results(self) -> list[RecognitionResult]:
        return self._results


class FakeTranscription(TranscriptionServiceBase):
    """Recognizer returning canned results for both request kinds."""

    def __init__(
        self,
        lines: list[str] | None = None,
        operation: FakeOperation | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("poll_initial_delay_seconds", 0.001)
        kwargs.setdefault("poll_max_delay_seconds", 0.002)
        super().__init__(**kwargs)
        self.results = [
            RecognitionResult([RecognitionAlternative(line, 0.9)])
            for line in (lines if lines is not None else ["Hello team.", "Ship it."])
        ]
        self.operation = operation
        self.recognize_calls = 0
        self.long_running_calls = 0
        self.error: Exception | None = None

    async def recognize(
        self, audio_b64: str, config: RecognitionConfig
    ) -> list[RecognitionResult]:
        self.recognize_calls += 1
        if self.error is not None:
            raise self.error
        return self.results

    async def start_long_running(
        self, audio_b64: str, config: RecognitionConfig
    ) -> LongRunningOperation:
        self.long_running_calls += 1
        if self.error is not None:
            raise self.error
        return self.operation or FakeOperation(self.results)


