"""Parsed video upload path value object."""

from __future__ import annotations

import posixpath
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.domain.exceptions import PathParseError

UPLOAD_ROOT = "videos"


class PathLayout(str, Enum):
    """Which record shape an upload path addresses."""

    WEEK = "week"  # videos/{weekId}/{videoId}.{ext}  -> weeks/{weekId}.videos[]
    USER = "user"  # videos/{userId}/{videoId}/{file} -> users/{userId}/videos/{videoId}


class VideoObjectPath(BaseModel):
    """Value object for an uploaded video's object-store key.

    Examples:
        >>> p = VideoObjectPath.parse("videos/2024-W10/abc123.webm")
        >>> (p.layout.value, p.parent_id, p.video_id)
        ('week', '2024-W10', 'abc123')

        >>> p = VideoObjectPath.parse("videos/u1/vid7/clip.webm")
        >>> (p.layout.value, p.parent_id, p.video_id)
        ('user', 'u1', 'vid7')
    """

    model_config = ConfigDict(frozen=True)

    object_path: str = Field(description="Full object-store key")
    layout: PathLayout
    parent_id: str = Field(description="weekId or userId, depending on layout")
    video_id: str
    filename: str = Field(description="Last path segment")

    @classmethod
    def parse(cls, object_path: str, root: str = UPLOAD_ROOT) -> VideoObjectPath:
        """Split an upload key into its record coordinates.

        Raises:
            PathParseError: If the key is not under ``videos/`` or does not
                have the segment count of either layout, or contains an
                empty, ``.`` or ``..`` segment.
        """
        segments = object_path.split("/")

        if segments[0] != root.strip("/"):
            raise PathParseError(object_path, f"expected '{root}' prefix")
        if len(segments) < 3:
            raise PathParseError(
                object_path,
                f"expected at least 3 segments, got {len(segments)}",
            )
        if len(segments) > 4:
            raise PathParseError(
                object_path,
                f"expected at most 4 segments, got {len(segments)}",
            )
        if any(not segment for segment in segments):
            raise PathParseError(object_path, "empty path segment")
        if any(segment in (".", "..") for segment in segments):
            raise PathParseError(object_path, "relative path segment")

        filename = segments[-1]
        if len(segments) == 3:
            video_id = _strip_extension(filename)
            layout = PathLayout.WEEK
        else:
            video_id = segments[2]
            layout = PathLayout.USER

        if not video_id:
            raise PathParseError(object_path, "empty video ID")

        return cls(
            object_path=object_path,
            layout=layout,
            parent_id=segments[1],
            video_id=video_id,
            filename=filename,
        )

    @property
    def week_id(self) -> str | None:
        """The week bucket, for week-layout paths."""
        return self.parent_id if self.layout == PathLayout.WEEK else None

    @property
    def user_id(self) -> str | None:
        """The owning user, for user-layout paths."""
        return self.parent_id if self.layout == PathLayout.USER else None

    @property
    def basename(self) -> str:
        """Last segment of the key, extension included."""
        return posixpath.basename(self.object_path)

    def thumbnail_path(self, prefix: str = "thumbnails") -> str:
        """Deterministic key of the derived thumbnail."""
        return f"{prefix.rstrip('/')}/{self.basename}.jpg"


def _strip_extension(filename: str) -> str:
    """Drop everything from the first dot, as the upload client names files."""
    return filename.split(".", 1)[0]
