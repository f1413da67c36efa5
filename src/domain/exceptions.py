"""Domain exceptions for the video ingestion pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.models.video import ProcessingStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class PathParseError(DomainException):
    """Raised when an uploaded object path does not follow the video layout.

    Permanent: the event carrying this path is dropped, never retried.
    """

    def __init__(self, object_path: str, reason: str) -> None:
        self.object_path = object_path
        self.reason = reason
        super().__init__(f"Cannot parse object path '{object_path}': {reason}")


class ObjectStoreError(DomainException):
    """Raised when a download, upload or URL signing call fails."""

    def __init__(self, bucket: str, path: str, reason: str) -> None:
        self.bucket = bucket
        self.path = path
        self.reason = reason
        super().__init__(f"Object store failure for {bucket}/{path}: {reason}")


class BlobNotFoundError(ObjectStoreError):
    """Raised when the requested object does not exist."""

    def __init__(self, bucket: str, path: str) -> None:
        super().__init__(bucket, path, "object not found")


class TranscodeError(DomainException):
    """Raised when an ffmpeg/ffprobe invocation fails.

    The message names the operation only; ``source`` is a local path and
    stays an attribute for logs.
    """

    def __init__(self, operation: str, source: str, stderr: str = "") -> None:
        self.operation = operation
        self.source = source
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"{operation} failed: {detail}")


class TranscriptionError(DomainException):
    """Raised when the speech recognition service fails or times out."""

    def __init__(self, reason: str, operation_name: str | None = None) -> None:
        self.reason = reason
        self.operation_name = operation_name
        super().__init__(f"Transcription failed: {reason}")


class DocumentStoreError(DomainException):
    """Raised when a document store read or write fails."""

    def __init__(self, collection: str, document_id: str, reason: str) -> None:
        self.collection = collection
        self.document_id = document_id
        self.reason = reason
        super().__init__(
            f"Document store failure on {collection}/{document_id}: {reason}"
        )


class VideoRecordNotFoundError(DomainException):
    """Raised when the record targeted by an upload does not exist."""

    def __init__(self, parent_id: str, video_id: str) -> None:
        self.parent_id = parent_id
        self.video_id = video_id
        super().__init__(f"Video record not found: {parent_id}/{video_id}")


class InvalidStatusTransitionError(DomainException):
    """Raised when a status write would violate the processing state machine."""

    def __init__(
        self,
        video_id: str,
        current: ProcessingStatus,
        target: ProcessingStatus,
    ) -> None:
        self.video_id = video_id
        self.current = current
        self.target = target
        super().__init__(
            f"Video {video_id} cannot move from {current.value} to {target.value}"
        )


class SummarizationError(DomainException):
    """Raised when the transcript summary cannot be generated."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Summarization failed: {reason}")


class InvalidEventError(DomainException):
    """Raised when an object-finalized payload names no bucket or object."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid object event: {reason}")


class InvalidVideoRecordError(DomainException):
    """Raised when a stored video record holds values the model rejects."""

    def __init__(self, parent_id: str, video_id: str, reason: str) -> None:
        self.parent_id = parent_id
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"Invalid video record {parent_id}/{video_id}: {reason}")


class RecordChangedError(DomainException):
    """Raised when a guarded write finds the record updated since it was read."""

    def __init__(self, parent_id: str, video_id: str) -> None:
        self.parent_id = parent_id
        self.video_id = video_id
        super().__init__(f"Video record {parent_id}/{video_id} changed since read")
