"""Domain value objects."""

from src.domain.value_objects.object_path import (
    UPLOAD_ROOT,
    PathLayout,
    VideoObjectPath,
)

__all__ = [
    "UPLOAD_ROOT",
    "PathLayout",
    "VideoObjectPath",
]
