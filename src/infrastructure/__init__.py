"""Infrastructure layer - external service implementations."""

from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.llm import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
    OpenAILLMService,
)
from src.infrastructure.transcription import (
    GoogleSpeechTranscription,
    LongRunningOperation,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionResult,
    TranscriptionServiceBase,
    assemble_transcript,
)
from src.infrastructure.video import FFmpegTranscoder, MediaTranscoderBase

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Transcription
    "TranscriptionServiceBase",
    "LongRunningOperation",
    "RecognitionConfig",
    "RecognitionResult",
    "RecognitionAlternative",
    "assemble_transcript",
    "GoogleSpeechTranscription",
    # LLM
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    # Video
    "MediaTranscoderBase",
    "FFmpegTranscoder",
]
