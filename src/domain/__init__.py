"""Domain layer - video records, upload paths and pipeline errors."""

from src.domain.exceptions import (
    BlobNotFoundError,
    DocumentStoreError,
    DomainException,
    InvalidEventError,
    InvalidStatusTransitionError,
    InvalidVideoRecordError,
    ObjectStoreError,
    PathParseError,
    RecordChangedError,
    SummarizationError,
    TranscodeError,
    TranscriptionError,
    VideoRecordNotFoundError,
)
from src.domain.models import (
    IN_FLIGHT_STATUSES,
    TERMINAL_STATUSES,
    ProcessingStatus,
    VideoRecord,
    WeekRecord,
    can_transition,
)
from src.domain.value_objects import PathLayout, VideoObjectPath

__all__ = [
    # Exceptions
    "DomainException",
    "PathParseError",
    "ObjectStoreError",
    "BlobNotFoundError",
    "TranscodeError",
    "TranscriptionError",
    "DocumentStoreError",
    "VideoRecordNotFoundError",
    "InvalidStatusTransitionError",
    "InvalidVideoRecordError",
    "RecordChangedError",
    "InvalidEventError",
    "SummarizationError",
    # Video
    "ProcessingStatus",
    "VideoRecord",
    "WeekRecord",
    "TERMINAL_STATUSES",
    "IN_FLIGHT_STATUSES",
    "can_transition",
    # Value Objects
    "PathLayout",
    "VideoObjectPath",
]
