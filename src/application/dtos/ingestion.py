"""DTOs for the object-finalized pipeline trigger and its outcome."""

from __future__ import annotations

from enum import Enum
from typing import Any
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field

from src.commons.settings.models import PipelineStageSettings
from src.domain.exceptions import InvalidEventError
from src.domain.models.video import ProcessingStatus


class ObjectFinalizedEvent(BaseModel):
    """An object finished uploading to the bucket."""

    bucket: str = Field(description="Bucket holding the new object")
    object_path: str = Field(description="Object key, URL-decoded")
    content_type: str | None = Field(default=None)
    size_bytes: int | None = Field(default=None, ge=0)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ObjectFinalizedEvent:
        """Accept any of the notification shapes the bucket can push.

        Supported shapes:
        - ``{"bucket": ..., "name": ...}`` (storage trigger style)
        - ``{"bucket": ..., "objectPath": ...}``
        - ``{"Records": [{"s3": {"bucket": {"name"}, "object": {"key"}}}]}``
          (MinIO/S3 bucket notification, key URL-encoded)

        Raises:
            InvalidEventError: If no bucket or object key can be found.
        """
        records = payload.get("Records")
        if records is not None:
            if not isinstance(records, list) or len(records) != 1:
                raise InvalidEventError("expected exactly one notification record")
            s3 = records[0].get("s3") or {}
            bucket = (s3.get("bucket") or {}).get("name")
            obj = s3.get("object") or {}
            key = obj.get("key")
            return cls._build(
                bucket,
                unquote_plus(key) if isinstance(key, str) else None,
                content_type=obj.get("contentType"),
                size_bytes=obj.get("size"),
            )

        return cls._build(
            payload.get("bucket"),
            payload.get("name") or payload.get("objectPath"),
            content_type=payload.get("contentType"),
            size_bytes=payload.get("size"),
        )

    @classmethod
    def _build(
        cls,
        bucket: Any,
        object_path: Any,
        content_type: Any = None,
        size_bytes: Any = None,
    ) -> ObjectFinalizedEvent:
        if not isinstance(bucket, str) or not bucket:
            raise InvalidEventError("missing bucket")
        if not isinstance(object_path, str) or not object_path:
            raise InvalidEventError("missing object path")
        return cls(
            bucket=bucket,
            object_path=object_path,
            content_type=content_type if isinstance(content_type, str) else None,
            # GCS sends size as a string
            size_bytes=int(size_bytes) if str(size_bytes or "").isdigit() else None,
        )


class PipelineStages(BaseModel):
    """Which derived artifacts a pipeline run produces."""

    model_config = ConfigDict(frozen=True)

    transcript: bool = True
    thumbnail: bool = True
    duration: bool = True
    summary: bool = False

    @classmethod
    def from_settings(cls, settings: PipelineStageSettings) -> PipelineStages:
        return cls(**settings.model_dump())


class PipelineOutcome(str, Enum):
    """How a pipeline run ended."""

    COMPLETED = "completed"  # Record written as ready
    SKIPPED = "skipped"  # Not a video upload, nothing touched
    DROPPED = "dropped"  # Unparseable path, nothing written
    ALREADY_TERMINAL = "already_terminal"  # Redelivery for a finished record
    FAILED = "failed"  # Record written as error


class PipelineResult(BaseModel):
    """Summary of one pipeline run."""

    outcome: PipelineOutcome
    object_path: str
    video_id: str | None = None
    status: ProcessingStatus | None = Field(
        default=None,
        description="Record status after the run",
    )
    error: str | None = Field(
        default=None,
        description="Sanitized error message for failed or dropped runs",
    )


class ReconciliationReport(BaseModel):
    """Result of one stale-record sweep."""

    examined: int = 0
    marked_error: list[str] = Field(
        default_factory=list,
        description="'{parentId}/{videoId}' of every record moved to error",
    )
    skipped: int = Field(default=0, description="Records that changed meanwhile")
