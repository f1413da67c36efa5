"""Application services for the video ingestion pipeline."""

from src.application.services.ingestion import VideoIngestionPipeline, sanitize_error
from src.application.services.reconciliation import StaleVideoReconciler
from src.application.services.scratch import ScratchSpace
from src.application.services.summarization import TranscriptSummarizer
from src.application.services.video_store import (
    EmbeddedWeekVideoStore,
    UserVideoStore,
    VideoStoreBase,
    VideoTarget,
)

__all__ = [
    "EmbeddedWeekVideoStore",
    "ScratchSpace",
    "StaleVideoReconciler",
    "TranscriptSummarizer",
    "UserVideoStore",
    "VideoIngestionPipeline",
    "VideoStoreBase",
    "VideoTarget",
    "sanitize_error",
]
