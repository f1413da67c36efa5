"""Domain models."""

from src.domain.models.video import (
    IN_FLIGHT_STATUSES,
    TERMINAL_STATUSES,
    ProcessingStatus,
    VideoRecord,
    WeekRecord,
    can_transition,
)

__all__ = [
    "IN_FLIGHT_STATUSES",
    "TERMINAL_STATUSES",
    "ProcessingStatus",
    "VideoRecord",
    "WeekRecord",
    "can_transition",
]
