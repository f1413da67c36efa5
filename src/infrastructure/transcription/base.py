"""Abstract base class for speech recognition services."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from src.commons.telemetry import get_logger
from src.domain.exceptions import TranscriptionError

# LINEAR16 is two bytes per sample
_BYTES_PER_SAMPLE = 2


@dataclass(frozen=True)
class RecognitionConfig:
    """Recognition parameters sent with every request."""

    encoding: str = "LINEAR16"
    sample_rate_hertz: int = 16000
    language_code: str = "en-US"
    enable_automatic_punctuation: bool = True
    model: str = "video"
    use_enhanced: bool = True

    def to_request(self, audio_b64: str) -> dict[str, Any]:
        """Build the REST request body for base64-encoded audio."""
        return {
            "audio": {"content": audio_b64},
            "config": {
                "encoding": self.encoding,
                "sampleRateHertz": self.sample_rate_hertz,
                "languageCode": self.language_code,
                "enableAutomaticPunctuation": self.enable_automatic_punctuation,
                "model": self.model,
                "useEnhanced": self.use_enhanced,
            },
        }


@dataclass
class RecognitionAlternative:
    """One candidate transcription of an utterance."""

    transcript: str
    confidence: float = 0.0


@dataclass
class RecognitionResult:
    """One utterance, alternatives ordered most likely first."""

    alternatives: list[RecognitionAlternative] = field(default_factory=list)


def assemble_transcript(results: Sequence[RecognitionResult]) -> str:
    """Join the top alternative of each result with newlines.

    A result without alternatives contributes an empty line, so the line
    count always equals the result count.

    Examples:
        >>> assemble_transcript([
        ...     RecognitionResult([RecognitionAlternative("Hello team.")]),
        ...     RecognitionResult([RecognitionAlternative("Ship it Friday.")]),
        ... ])
        'Hello team.\\nShip it Friday.'
        >>> assemble_transcript([])
        ''
    """
    return "\n".join(
        result.alternatives[0].transcript if result.alternatives else ""
        for result in results
    )


class LongRunningOperation(ABC):
    """Handle to a server-side recognition job."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Operation identifier assigned by the service."""

    @abstractmethod
    async def done(self) -> bool:
        """Refresh the operation state and report completion."""

    @abstractmethod
    async def results(self) -> list[RecognitionResult]:
        """Results of a finished operation.

        Raises:
            TranscriptionError: If the operation finished with an error.
        """


class TranscriptionServiceBase(ABC):
    """Abstract base class for speech recognition services.

    Subclasses implement the two service calls; routing between them,
    polling and transcript assembly live here.
    """

    def __init__(
        self,
        sync_max_duration_seconds: float = 60.0,
        sync_max_bytes: int = 10 * 1024 * 1024,
        poll_initial_delay_seconds: float = 2.0,
        poll_max_delay_seconds: float = 30.0,
        poll_multiplier: float = 2.0,
        timeout_seconds: float = 540.0,
    ) -> None:
        """Initialize routing and polling parameters.

        Args:
            sync_max_duration_seconds: Longest audio sent to the sync API.
            sync_max_bytes: Largest audio payload sent to the sync API.
            poll_initial_delay_seconds: First wait between status polls.
            poll_max_delay_seconds: Upper bound of the wait between polls.
            poll_multiplier: Growth factor of the wait after each poll.
            timeout_seconds: Default overall wait for a long-running job.
        """
        self._sync_max_duration = sync_max_duration_seconds
        self._sync_max_bytes = sync_max_bytes
        self._poll_initial_delay = poll_initial_delay_seconds
        self._poll_max_delay = poll_max_delay_seconds
        self._poll_multiplier = poll_multiplier
        self._timeout = timeout_seconds
        self._logger = get_logger(__name__)

    @abstractmethod
    async def recognize(
        self,
        audio_b64: str,
        config: RecognitionConfig,
    ) -> list[RecognitionResult]:
        """Recognize short audio in a single request.

        Args:
            audio_b64: Base64-encoded audio content.
            config: Recognition parameters.

        Returns:
            Results in utterance order.

        Raises:
            TranscriptionError: On quota, malformed audio or network failure.
        """

    @abstractmethod
    async def start_long_running(
        self,
        audio_b64: str,
        config: RecognitionConfig,
    ) -> LongRunningOperation:
        """Submit audio for asynchronous recognition.

        Raises:
            TranscriptionError: If the job cannot be submitted.
        """

    async def transcribe(self, audio_b64: str, config: RecognitionConfig) -> str:
        """Recognize short audio and assemble the transcript."""
        return assemble_transcript(await self.recognize(audio_b64, config))

    async def await_result(
        self,
        operation: LongRunningOperation,
        timeout_seconds: float | None = None,
    ) -> str:
        """Poll a long-running job with exponential backoff until it finishes.

        Args:
            operation: Handle returned by ``start_long_running``.
            timeout_seconds: Overall wait. Defaults to the configured timeout.

        Returns:
            The assembled transcript.

        Raises:
            TranscriptionError: If the job fails or does not finish in time.
        """
        timeout = self._timeout if timeout_seconds is None else timeout_seconds
        deadline = time.monotonic() + timeout
        delay = self._poll_initial_delay
        polls = 0

        while not await operation.done():
            polls += 1
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TranscriptionError(
                    f"operation did not finish within {timeout:g}s",
                    operation_name=operation.name,
                )
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * self._poll_multiplier, self._poll_max_delay)

        self._logger.info(
            "Long-running recognition finished",
            extra={"operation_name": operation.name, "polls": polls},
        )
        return assemble_transcript(await operation.results())

    async def transcribe_long_running(
        self,
        audio_b64: str,
        config: RecognitionConfig,
        timeout_seconds: float | None = None,
    ) -> str:
        """Submit a long-running job and wait for its transcript."""
        operation = await self.start_long_running(audio_b64, config)
        self._logger.info(
            "Long-running recognition started",
            extra={"operation_name": operation.name},
        )
        return await self.await_result(operation, timeout_seconds)

    def requires_long_running(
        self,
        audio_size_bytes: int,
        config: RecognitionConfig,
        duration_seconds: float | None = None,
    ) -> bool:
        """Whether audio is too long or too large for the sync API.

        Without a probed duration, the length is estimated from the PCM
        byte count at the configured sample rate.
        """
        if audio_size_bytes > self._sync_max_bytes:
            return True
        if not duration_seconds:
            duration_seconds = audio_size_bytes / (
                config.sample_rate_hertz * _BYTES_PER_SAMPLE
            )
        return duration_seconds > self._sync_max_duration
