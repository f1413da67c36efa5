"""Video record domain model and processing state machine."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ProcessingStatus(str, Enum):
    """Lifecycle status of an uploaded video."""

    PENDING = "pending"  # Uploaded, pipeline not started
    PROCESSING = "processing"  # Media extraction in progress
    TRANSCRIBING = "transcribing"  # Speech recognition in progress
    READY = "ready"  # Terminal success
    ERROR = "error"  # Terminal failure


_DATETIME = TypeAdapter(datetime)

TERMINAL_STATUSES = frozenset({ProcessingStatus.READY, ProcessingStatus.ERROR})
IN_FLIGHT_STATUSES = frozenset(
    {ProcessingStatus.PROCESSING, ProcessingStatus.TRANSCRIBING}
)

_ALLOWED_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset(
        {
            ProcessingStatus.PROCESSING,
            ProcessingStatus.TRANSCRIBING,
            ProcessingStatus.ERROR,
        }
    ),
    ProcessingStatus.PROCESSING: frozenset(
        {
            ProcessingStatus.PROCESSING,
            ProcessingStatus.TRANSCRIBING,
            ProcessingStatus.READY,
            ProcessingStatus.ERROR,
        }
    ),
    ProcessingStatus.TRANSCRIBING: frozenset(
        {
            ProcessingStatus.TRANSCRIBING,
            ProcessingStatus.READY,
            ProcessingStatus.ERROR,
        }
    ),
    ProcessingStatus.READY: frozenset(),
    ProcessingStatus.ERROR: frozenset(),
}


# Values the web client wrote before processingStatus existed
_LEGACY_STATUSES = {"failed": ProcessingStatus.ERROR.value}

# Stored nulls that mean "not set yet"
_NULL_MEANS_DEFAULT = (
    "title",
    "visibility",
    "durationSeconds",
    "thumbnailUrl",
    "retryCount",
)


def parse_status(value: Any) -> ProcessingStatus:
    """Read a stored status, accepting legacy web-client values.

    Raises:
        ValueError: If the value is not a known status.
    """
    if isinstance(value, str):
        value = _LEGACY_STATUSES.get(value, value)
    return ProcessingStatus(value)


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    """Check whether a status write is allowed by the state machine.

    Re-entering an in-flight status is allowed so that a redelivered event
    for a crashed run can make progress. Nothing leaves ``ready`` or ``error``.
    """
    return target in _ALLOWED_TRANSITIONS[current]


class VideoRecord(BaseModel):
    """An uploaded video and the artifacts the pipeline derives from it.

    Stored with camelCase field names, either as a standalone document or
    as an element of a week's ``videos`` array.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = Field(description="Opaque video ID taken from the upload path")
    owner_user_id: str | None = Field(
        default=None,
        description="User who recorded the video",
    )
    week_id: str | None = Field(
        default=None,
        description="ISO-week bucket the video belongs to",
    )
    source_object_path: str | None = Field(
        default=None,
        description="Object-store key of the uploaded video",
    )
    title: str = Field(default="", description="User supplied title")
    visibility: Literal["team", "private"] = Field(default="team")
    duration_seconds: float = Field(
        default=0,
        ge=0,
        description="Media duration, 0 until probed",
    )
    thumbnail_url: str = Field(
        default="",
        description="Signed read URL of the thumbnail, empty until generated",
    )
    transcript: str | None = Field(
        default=None,
        description="Transcript text, absent until transcription completes",
    )
    summary: str | None = Field(default=None, description="Transcript summary")
    processing_status: ProcessingStatus = Field(default=ProcessingStatus.PENDING)
    last_error: str | None = Field(
        default=None,
        description="Short sanitized error message, set only in error state",
    )
    retry_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "VideoRecord":
        """Build a record from a stored document.

        Older documents written by the web client carry ``status`` instead
        of ``processingStatus``; that value is used when the canonical field
        is missing. Their ``failed`` status reads as ``error``.

        Raises:
            pydantic.ValidationError: If a field holds an unusable value.
        """
        data = dict(document)
        if "processingStatus" not in data and "status" in data:
            data["processingStatus"] = data["status"]
        status = data.get("processingStatus")
        if isinstance(status, str):
            data["processingStatus"] = _LEGACY_STATUSES.get(status, status)
        for key in _NULL_MEANS_DEFAULT:
            if key in data and data[key] is None:
                del data[key]
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def to_storage_fields(cls, updates: dict[str, Any]) -> dict[str, Any]:
        """Convert a partial update keyed by field name to its stored form.

        Examples:
            >>> VideoRecord.to_storage_fields(
            ...     {"processing_status": ProcessingStatus.READY, "last_error": None}
            ... )
            {'processingStatus': 'ready', 'lastError': None}
        """
        stored: dict[str, Any] = {}
        for name, value in updates.items():
            field = cls.model_fields.get(name)
            key = field.alias if field is not None and field.alias else to_camel(name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = _DATETIME.dump_python(value, mode="json")
            stored[key] = value
        return stored

    @property
    def is_terminal(self) -> bool:
        """Whether the pipeline has finished with this video."""
        return self.processing_status in TERMINAL_STATUSES

    @property
    def is_in_flight(self) -> bool:
        """Whether a pipeline run is (or was last seen) working on this video."""
        return self.processing_status in IN_FLIGHT_STATUSES


class WeekRecord(BaseModel):
    """A week aggregate embedding its videos as an array."""

    model_config = ConfigDict(extra="allow")

    id: str
    videos: list[dict[str, Any]] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    def find_video(self, video_id: str) -> dict[str, Any] | None:
        """Return the raw embedded element whose ``id`` matches."""
        for video in self.videos:
            if video.get("id") == video_id:
                return video
        return None
