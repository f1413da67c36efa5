"""Abstract base class for media transcoding."""

from abc import ABC, abstractmethod
from pathlib import Path


class MediaTranscoderBase(ABC):
    """Derives pipeline artifacts from an uploaded video file.

    Every operation raises ``TranscodeError`` on failure and never leaves
    a partially written output file behind.
    """

    @abstractmethod
    async def extract_audio(
        self,
        video_path: Path,
        output_path: Path | None = None,
    ) -> Path:
        """Extract the audio track as 16-bit PCM WAV.

        Args:
            video_path: Path to input video.
            output_path: Where to write the WAV. Defaults to the video path
                with a ``.wav`` suffix.

        Returns:
            Path of the written WAV file.
        """

    @abstractmethod
    async def extract_thumbnail(
        self,
        video_path: Path,
        timestamp_fraction: float = 0.5,
        output_path: Path | None = None,
        size: tuple[int, int] = (320, 180),
        duration_seconds: float | None = None,
    ) -> Path:
        """Capture one JPEG frame at ``timestamp_fraction`` of the duration.

        Args:
            video_path: Path to input video.
            timestamp_fraction: Position of the frame, 0.0 to 1.0.
            output_path: Where to write the JPEG. Defaults to the video path
                with a ``.jpg`` suffix.
            size: Output width and height.
            duration_seconds: Known duration, probed when not given.

        Returns:
            Path of the written JPEG file.
        """

    @abstractmethod
    async def probe_duration(self, video_path: Path) -> float:
        """Read the container duration in seconds, 0.0 when unknown."""
