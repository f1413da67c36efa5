"""Video ingestion pipeline triggered by object-finalized events."""

import asyncio
import base64
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.application.dtos.ingestion import (
    ObjectFinalizedEvent,
    PipelineOutcome,
    PipelineResult,
    PipelineStages,
)
from src.application.services.scratch import ScratchSpace
from src.application.services.summarization import TranscriptSummarizer
from src.application.services.video_store import VideoStoreBase, VideoTarget
from src.commons.infrastructure.blob.base import BlobStorageBase
from src.commons.settings.models import Settings
from src.commons.telemetry import (
    LogContext,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from src.domain.exceptions import (
    DocumentStoreError,
    InvalidStatusTransitionError,
    InvalidVideoRecordError,
    PathParseError,
    VideoRecordNotFoundError,
)
from src.domain.models.video import ProcessingStatus
from src.domain.value_objects.object_path import VideoObjectPath
from src.infrastructure.transcription.base import (
    RecognitionConfig,
    TranscriptionServiceBase,
)
from src.infrastructure.video.base import MediaTranscoderBase


def sanitize_error(
    error: BaseException,
    max_length: int = 200,
    redact: Mapping[str, str] | None = None,
) -> str:
    """Reduce an exception to one short line safe to store on a record.

    Args:
        error: The failure to describe.
        max_length: Longest message returned.
        redact: Substrings to replace, such as local paths, applied in order.

    Examples:
        >>> sanitize_error(ValueError("bad input\\nTraceback (most recent call last):"))
        'ValueError: bad input'
        >>> sanitize_error(OSError("/tmp/v/a.webm: gone"), redact={"/tmp/v/a.webm": "a"})
        'OSError: a: gone'
    """
    lines = str(error).strip().splitlines()
    first_line = lines[0].strip() if lines else ""
    for secret, replacement in (redact or {}).items():
        first_line = first_line.replace(secret, replacement)
    category = type(error).__name__
    message = f"{category}: {first_line}" if first_line else category
    if len(message) > max_length:
        message = message[: max_length - 3] + "..."
    return message


def _now() -> datetime:
    return datetime.now(UTC)


class VideoIngestionPipeline:
    """Turns an uploaded video into a ready record.

    Pipeline steps:
    1. Parse the object path into the record it addresses
    2. Download the video to scratch space
    3. Re-read the record, stop if it is already ready/error, else mark it
       processing or transcribing
    4. Probe duration, extract audio and thumbnail
    5. Transcribe the audio (sync or long-running by length)
    6. Optionally summarize the transcript
    7. Upload the thumbnail and sign a read URL
    8. Write all results with status ready

    Any failure in steps 2-8 ends in exactly one error write. Scratch files
    are always removed.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        transcoder: MediaTranscoderBase,
        transcription_service: TranscriptionServiceBase,
        video_store: VideoStoreBase,
        settings: Settings,
        summarizer: TranscriptSummarizer | None = None,
        stages: PipelineStages | None = None,
    ) -> None:
        """Initialize the pipeline with its clients.

        Args:
            blob_storage: Object store holding uploads and thumbnails.
            transcoder: Media transcoder (ffmpeg).
            transcription_service: Speech recognition client.
            video_store: Record store matching the configured path layout.
            settings: Application settings.
            summarizer: Required when the summary stage is enabled.
            stages: Stage switches. Defaults to ``settings.pipeline.stages``.
        """
        self._blob = blob_storage
        self._transcoder = transcoder
        self._transcriber = transcription_service
        self._store = video_store
        self._settings = settings
        self._summarizer = summarizer
        self._stages = stages or PipelineStages.from_settings(settings.pipeline.stages)
        self._logger = get_logger(__name__)

        if self._stages.summary and summarizer is None:
            raise ValueError("Summary stage enabled without a summarizer")

        trans = settings.transcription
        self._recognition_config = RecognitionConfig(
            sample_rate_hertz=trans.sample_rate_hertz,
            language_code=trans.language_code,
            enable_automatic_punctuation=trans.enable_automatic_punctuation,
            model=trans.model,
            use_enhanced=trans.use_enhanced,
        )

    @property
    def stages(self) -> PipelineStages:
        return self._stages

    async def handle(self, event: ObjectFinalizedEvent) -> PipelineResult:
        """Run the pipeline for one object-finalized event.

        Returns:
            The outcome. Failures inside the pipeline are reported here,
            not raised.

        Raises:
            DocumentStoreError: If the final or the error status write fails,
                so the platform redelivers the event.
        """
        if get_correlation_id() is None:
            set_correlation_id()

        object_path = event.object_path
        pipeline_settings = self._settings.pipeline

        if not object_path.startswith(pipeline_settings.upload_prefix):
            self._logger.debug(
                "Ignoring object outside upload prefix",
                extra={"object_path": object_path},
            )
            return PipelineResult(outcome=PipelineOutcome.SKIPPED, object_path=object_path)

        suffix = pipeline_settings.required_suffix
        if suffix and not object_path.lower().endswith(suffix.lower()):
            self._logger.debug(
                "Ignoring object with unexpected suffix",
                extra={"object_path": object_path, "required_suffix": suffix},
            )
            return PipelineResult(outcome=PipelineOutcome.SKIPPED, object_path=object_path)

        try:
            parsed = VideoObjectPath.parse(
                object_path, root=pipeline_settings.upload_prefix
            )
            if parsed.layout != self._store.layout:
                raise PathParseError(
                    object_path,
                    f"{parsed.layout.value} layout path, "
                    f"store expects {self._store.layout.value}",
                )
        except PathParseError as e:
            self._logger.error(
                "Dropping event with unparseable object path",
                extra={"object_path": object_path, "reason": e.reason},
            )
            return PipelineResult(
                outcome=PipelineOutcome.DROPPED,
                object_path=object_path,
                error=sanitize_error(e, pipeline_settings.last_error_max_length),
            )

        target = VideoTarget.from_path(parsed)

        with LogContext(video_id=parsed.video_id, object_path=object_path):
            self._logger.info(
                "Starting video processing",
                extra={
                    "bucket": event.bucket,
                    "layout": parsed.layout.value,
                    "parent_id": parsed.parent_id,
                    "stages": self._stages.model_dump(),
                },
            )
            with ScratchSpace(base_dir=pipeline_settings.scratch_dir) as scratch:
                return await self._process(event, parsed, target, scratch)

    async def _process(
        self,
        event: ObjectFinalizedEvent,
        parsed: VideoObjectPath,
        target: VideoTarget,
        scratch: Path,
    ) -> PipelineResult:
        try:
            video_file = await self._blob.download_to_file(
                event.bucket, event.object_path, scratch / parsed.filename
            )

            record = await self._store.get(target)
            if record is None:
                raise VideoRecordNotFoundError(target.parent_id, target.video_id)

            if record.is_terminal:
                self._logger.info(
                    "Record already finished, ignoring redelivered event",
                    extra={"status": record.processing_status.value},
                )
                return PipelineResult(
                    outcome=PipelineOutcome.ALREADY_TERMINAL,
                    object_path=event.object_path,
                    video_id=target.video_id,
                    status=record.processing_status,
                )

            in_flight = (
                ProcessingStatus.TRANSCRIBING
                if self._stages.transcript
                else ProcessingStatus.PROCESSING
            )
            await self._store.merge(
                target, {"processing_status": in_flight, "updated_at": _now()}
            )

            final_updates = await self._derive(event, parsed, video_file, scratch)
        except Exception as e:
            return await self._record_failure(event, parsed, target, e, scratch)

        try:
            await self._store.merge(target, final_updates)
        except DocumentStoreError:
            self._logger.exception("Final status write failed")
            raise
        except Exception as e:
            return await self._record_failure(event, parsed, target, e, scratch)

        self._logger.info(
            "Video processing completed",
            extra={
                "duration_seconds": final_updates.get("duration_seconds"),
                "transcript_chars": len(final_updates.get("transcript") or ""),
            },
        )
        return PipelineResult(
            outcome=PipelineOutcome.COMPLETED,
            object_path=event.object_path,
            video_id=target.video_id,
            status=ProcessingStatus.READY,
        )

    async def _derive(
        self,
        event: ObjectFinalizedEvent,
        parsed: VideoObjectPath,
        video_file: Path,
        scratch: Path,
    ) -> dict[str, Any]:
        """Produce every enabled artifact and return the final record update."""
        ffmpeg = self._settings.transcoder
        updates: dict[str, Any] = {}

        duration: float | None = None
        if self._stages.duration:
            duration = await self._transcoder.probe_duration(video_file)
            updates["duration_seconds"] = duration

        audio_file: Path | None = None
        if self._stages.transcript:
            audio_file = await self._transcoder.extract_audio(
                video_file, scratch / "audio.wav"
            )

        thumbnail_file: Path | None = None
        if self._stages.thumbnail:
            thumbnail_file = await self._transcoder.extract_thumbnail(
                video_file,
                timestamp_fraction=ffmpeg.thumbnail_timestamp_fraction,
                output_path=scratch / "thumbnail.jpg",
                size=(ffmpeg.thumbnail_width, ffmpeg.thumbnail_height),
                duration_seconds=duration,
            )

        if audio_file is not None:
            transcript = await self._transcribe(audio_file, duration)
            updates["transcript"] = transcript

            if self._stages.summary and self._summarizer and transcript.strip():
                updates["summary"] = await self._summarizer.summarize(transcript)

        if thumbnail_file is not None:
            updates["thumbnail_url"] = await self._publish_thumbnail(
                event.bucket, parsed, thumbnail_file
            )

        updates.update(
            processing_status=ProcessingStatus.READY,
            last_error=None,
            updated_at=_now(),
        )
        return updates

    async def _transcribe(self, audio_file: Path, duration: float | None) -> str:
        loop = asyncio.get_event_loop()
        audio_bytes = await loop.run_in_executor(None, audio_file.read_bytes)
        audio_b64 = base64.b64encode(audio_bytes).decode("ascii")
        config = self._recognition_config

        if self._transcriber.requires_long_running(len(audio_bytes), config, duration):
            self._logger.info(
                "Using long-running recognition",
                extra={"audio_bytes": len(audio_bytes), "duration_seconds": duration},
            )
            return await self._transcriber.transcribe_long_running(
                audio_b64, config, self._settings.transcription.timeout_seconds
            )

        return await self._transcriber.transcribe(audio_b64, config)

    async def _publish_thumbnail(
        self,
        bucket: str,
        parsed: VideoObjectPath,
        thumbnail_file: Path,
    ) -> str:
        blob_settings = self._settings.blob_storage
        thumbnail_path = parsed.thumbnail_path(blob_settings.thumbnail_prefix)

        await self._blob.upload_file(
            bucket, thumbnail_path, thumbnail_file, content_type="image/jpeg"
        )
        return await self._blob.generate_presigned_url(
            bucket,
            thumbnail_path,
            expiry_seconds=blob_settings.presigned_url_expiry_seconds,
        )

    async def _record_failure(
        self,
        event: ObjectFinalizedEvent,
        parsed: VideoObjectPath,
        target: VideoTarget,
        error: Exception,
        scratch: Path,
    ) -> PipelineResult:
        """Write the single error status for a failed run.

        ``retryCount`` is incremented from the record as read by the error
        write. Local scratch paths never reach ``lastError``.

        Raises:
            DocumentStoreError: If the error write itself fails.
        """
        self._logger.error(
            "Video processing failed",
            exc_info=error,
            extra={"error_type": type(error).__name__},
        )

        message = sanitize_error(
            error,
            self._settings.pipeline.last_error_max_length,
            redact={
                str(scratch / parsed.filename): event.object_path,
                str(scratch): "",
            },
        )
        try:
            await self._store.merge(
                target,
                {
                    "processing_status": ProcessingStatus.ERROR,
                    "last_error": message,
                    "updated_at": _now(),
                },
                increment_retry_count=True,
            )
        except (
            InvalidStatusTransitionError,
            InvalidVideoRecordError,
            VideoRecordNotFoundError,
        ) as write_error:
            # Nothing to mark: the record is gone, unreadable or already finished
            self._logger.warning(
                "Error status not recorded",
                extra={"reason": str(write_error)},
            )

        return PipelineResult(
            outcome=PipelineOutcome.FAILED,
            object_path=event.object_path,
            video_id=target.video_id,
            status=ProcessingStatus.ERROR,
            error=message,
        )
