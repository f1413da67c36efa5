"""Transcript summary generation."""

from src.commons.settings.models import LLMSettings
from src.commons.telemetry import get_logger
from src.domain.exceptions import SummarizationError
from src.infrastructure.llm.base import LLMServiceBase, Message, MessageRole

SUMMARY_SYSTEM_PROMPT = (
    "You are a professional video summarizer. "
    "Create concise, clear summaries that capture the key points."
)
SUMMARY_USER_PROMPT = (
    "Please summarize this video transcript in a clear, professional manner:\n\n"
    "{transcript}"
)


class TranscriptSummarizer:
    """Summarizes a finished transcript with a single completion."""

    def __init__(self, llm_service: LLMServiceBase, settings: LLMSettings) -> None:
        self._llm = llm_service
        self._settings = settings
        self._logger = get_logger(__name__)

    async def summarize(self, transcript: str) -> str:
        """Generate a summary of ``transcript``.

        Raises:
            SummarizationError: If the LLM call fails or returns nothing.
        """
        messages = [
            Message(role=MessageRole.SYSTEM, content=SUMMARY_SYSTEM_PROMPT),
            Message(
                role=MessageRole.USER,
                content=SUMMARY_USER_PROMPT.format(transcript=transcript),
            ),
        ]

        response = await self._llm.generate(
            messages,
            model=self._settings.model,
            temperature=self._settings.temperature,
            max_tokens=self._settings.max_tokens,
        )

        summary = response.content.strip()
        if not summary:
            raise SummarizationError("model returned an empty summary")

        self._logger.info(
            "Transcript summarized",
            extra={
                "model": response.model,
                "transcript_chars": len(transcript),
                "summary_chars": len(summary),
            },
        )
        return summary
