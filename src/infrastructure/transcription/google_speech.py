"""Google Cloud Speech-to-Text implementation of transcription service."""

import asyncio
import base64
import binascii
from collections.abc import Callable
from typing import Any, TypeVar

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import speech

from src.commons.telemetry import timed
from src.domain.exceptions import TranscriptionError
from src.infrastructure.transcription.base import (
    LongRunningOperation,
    RecognitionAlternative,
    RecognitionConfig,
    RecognitionResult,
    TranscriptionServiceBase,
)

T = TypeVar("T")


def _to_speech_config(config: RecognitionConfig) -> speech.RecognitionConfig:
    return speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding[config.encoding],
        sample_rate_hertz=config.sample_rate_hertz,
        language_code=config.language_code,
        enable_automatic_punctuation=config.enable_automatic_punctuation,
        model=config.model,
        use_enhanced=config.use_enhanced,
    )


def _to_audio(audio_b64: str) -> speech.RecognitionAudio:
    try:
        content = base64.b64decode(audio_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TranscriptionError(f"audio is not valid base64: {e}") from e
    return speech.RecognitionAudio(content=content)


def _to_results(response: Any) -> list[RecognitionResult]:
    return [
        RecognitionResult(
            alternatives=[
                RecognitionAlternative(
                    transcript=alt.transcript,
                    confidence=alt.confidence,
                )
                for alt in result.alternatives
            ]
        )
        for result in response.results
    ]


async def _call(
    fn: Callable[[], T],
    operation_name: str | None = None,
) -> T:
    """Run a blocking SDK call in the executor, translating SDK errors."""
    loop = asyncio.get_event_loop()
    try:
        return await loop.run_in_executor(None, fn)
    except (GoogleAPIError, GoogleAuthError) as e:
        raise TranscriptionError(str(e), operation_name=operation_name) from e


class GoogleSpeechOperation(LongRunningOperation):
    """Wraps a ``google.api_core.operation.Operation``."""

    def __init__(self, operation: Any) -> None:
        self._operation = operation

    @property
    def name(self) -> str:
        return str(self._operation.operation.name)

    async def done(self) -> bool:
        # done() refreshes the operation from the server
        return bool(await _call(self._operation.done, self.name))

    async def results(self) -> list[RecognitionResult]:
        response = await _call(self._operation.result, self.name)
        return _to_results(response)


class GoogleSpeechTranscription(TranscriptionServiceBase):
    """Speech-to-Text v1 client.

    Uses ``recognize`` for short audio and ``long_running_recognize`` for
    anything above the sync limits. The client is created on first use so
    that credentials are only needed when a transcript is requested.
    """

    def __init__(
        self,
        credentials_file: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the client wrapper.

        Args:
            credentials_file: Service-account JSON. Application Default
                Credentials are used when None.
            **kwargs: Routing and polling options, see
                ``TranscriptionServiceBase``.
        """
        super().__init__(**kwargs)
        self._credentials_file = credentials_file
        self._client: speech.SpeechClient | None = None

    def _get_client(self) -> speech.SpeechClient:
        if self._client is None:
            if self._credentials_file:
                self._client = speech.SpeechClient.from_service_account_file(
                    self._credentials_file
                )
            else:
                self._client = speech.SpeechClient()
        return self._client

    @timed(operation="recognize")
    async def recognize(
        self,
        audio_b64: str,
        config: RecognitionConfig,
    ) -> list[RecognitionResult]:
        """Recognize short audio in a single request."""
        audio = _to_audio(audio_b64)
        speech_config = _to_speech_config(config)

        response = await _call(
            lambda: self._get_client().recognize(config=speech_config, audio=audio)
        )
        return _to_results(response)

    async def start_long_running(
        self,
        audio_b64: str,
        config: RecognitionConfig,
    ) -> LongRunningOperation:
        """Submit audio to ``long_running_recognize``."""
        audio = _to_audio(audio_b64)
        speech_config = _to_speech_config(config)

        operation = await _call(
            lambda: self._get_client().long_running_recognize(
                config=speech_config, audio=audio
            )
        )
        return GoogleSpeechOperation(operation)
