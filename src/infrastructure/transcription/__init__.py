"""Transcription services."""

from src.infrastructure.transcription.base import (
    LongRunningOperation,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionResult,
    TranscriptionServiceBase,
    assemble_transcript,
)
from src.infrastructure.transcription.google_speech import (
    GoogleSpeechOperation,
    GoogleSpeechTranscription,
)

__all__ = [
    # Base classes
    "TranscriptionServiceBase",
    "LongRunningOperation",
    "RecognitionConfig",
    "RecognitionResult",
    "RecognitionAlternative",
    "assemble_transcript",
    # Implementations
    "GoogleSpeechTranscription",
    "GoogleSpeechOperation",
]
