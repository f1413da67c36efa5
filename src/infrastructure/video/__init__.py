"""Video processing services."""

from src.infrastructure.video.base import MediaTranscoderBase
from src.infrastructure.video.ffmpeg_transcoder import FFmpegTranscoder

__all__ = [
    # Base classes
    "MediaTranscoderBase",
    # Implementations
    "FFmpegTranscoder",
]
