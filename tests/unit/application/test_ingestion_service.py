"""Unit tests for VideoIngestionPipeline."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.dtos.ingestion import (
    ObjectFinalizedEvent,
    PipelineOutcome,
    PipelineStages,
)
from src.application.services.ingestion import VideoIngestionPipeline, sanitize_error
from src.application.services.video_store import (
    EmbeddedWeekVideoStore,
    UserVideoStore,
)
from src.commons.telemetry import get_correlation_id
from src.domain.exceptions import (
    DocumentStoreError,
    ObjectStoreError,
    TranscriptionError,
)
from src.domain.models.video import ProcessingStatus
from tests.unit.fakes import FakeOperation

BUCKET = "teamzones-uploads"
WEEK_PATH = "videos/2024-W10/abc123.webm"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def week_store(document_db, week_document):
    document_db.seed("weeks", week_document)
    return EmbeddedWeekVideoStore(document_db, "weeks")


@pytest.fixture
def make_pipeline(blob_storage, transcoder, transcription, week_store, settings):
    """Build a pipeline, overriding any collaborator by keyword."""

    def _make(**overrides):
        kwargs = {
            "blob_storage": blob_storage,
            "transcoder": transcoder,
            "transcription_service": transcription,
            "video_store": week_store,
            "settings": settings,
        }
        kwargs.update(overrides)
        return VideoIngestionPipeline(**kwargs)

    return _make


@pytest.fixture
def uploaded(blob_storage):
    blob_storage.objects[(BUCKET, WEEK_PATH)] = b"webm-bytes"
    return ObjectFinalizedEvent(bucket=BUCKET, object_path=WEEK_PATH)


def _element(document_db, video_id="abc123"):
    week = document_db.get("weeks", "2024-W10")
    return next(v for v in week["videos"] if v["id"] == video_id)


def _scratch_is_empty(settings) -> bool:
    return not any(Path(settings.pipeline.scratch_dir).iterdir())


# =============================================================================
# Tests
# =============================================================================


class TestSanitizeError:
    def test_first_line_only(self):
        error = RuntimeError("speech quota exceeded\n  at line 1\n  at line 2")
        assert sanitize_error(error) == "RuntimeError: speech quota exceeded"

    def test_truncates(self):
        message = sanitize_error(ValueError("x" * 500), max_length=50)
        assert len(message) == 50
        assert message.endswith("...")

    def test_empty_message(self):
        assert sanitize_error(TimeoutError()) == "TimeoutError"

    def test_redacts_local_paths(self):
        error = OSError("/tmp/video-x1/abc123.webm: No space left on device")
        message = sanitize_error(
            error,
            redact={"/tmp/video-x1/abc123.webm": WEEK_PATH, "/tmp/video-x1": ""},
        )
        assert message == f"OSError: {WEEK_PATH}: No space left on device"


class TestSuccessfulRun:
    async def test_week_upload_becomes_ready(
        self, make_pipeline, uploaded, document_db, blob_storage, settings, week_document
    ):
        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.COMPLETED
        assert result.video_id == "abc123"
        assert result.status == ProcessingStatus.READY

        element = _element(document_db)
        assert element["processingStatus"] == "ready"
        assert element["transcript"] == "Hello team.\nShip it."
        assert element["durationSeconds"] == 12.5
        assert element["thumbnailUrl"] == (
            f"https://storage.test/{BUCKET}/thumbnails/abc123.webm.jpg"
            "?X-Amz-Expires=604800"
        )
        assert element["lastError"] is None
        assert element["title"] == "Standup"
        assert _element(document_db, "sib999") == week_document["videos"][1]

    async def test_thumbnail_uploaded_as_jpeg(self, make_pipeline, uploaded, blob_storage):
        await make_pipeline().handle(uploaded)

        assert blob_storage.uploads == [
            {
                "bucket": BUCKET,
                "path": "thumbnails/abc123.webm.jpg",
                "content_type": "image/jpeg",
            }
        ]

    async def test_marks_transcribing_before_final_write(
        self, make_pipeline, uploaded, document_db
    ):
        await make_pipeline().handle(uploaded)

        statuses = [
            call["updates"]["videos"][0]["processingStatus"]
            for call in document_db.update_if_calls
        ]
        assert statuses == ["transcribing", "ready"]

    async def test_scratch_removed(self, make_pipeline, uploaded, settings, transcoder):
        await make_pipeline().handle(uploaded)

        assert transcoder.outputs
        assert all(not path.exists() for path in transcoder.outputs)
        assert _scratch_is_empty(settings)

    async def test_sets_correlation_id(self, make_pipeline, uploaded):
        await make_pipeline().handle(uploaded)
        assert get_correlation_id() is not None

    async def test_user_layout(
        self, make_pipeline, blob_storage, document_db, settings
    ):
        document_db.seed(
            "user_videos", {"id": "u1/vid7", "processingStatus": "pending"}
        )
        store = UserVideoStore(document_db, "user_videos")
        path = "videos/u1/vid7/recording.webm"
        blob_storage.objects[(BUCKET, path)] = b"webm"

        result = await make_pipeline(video_store=store).handle(
            ObjectFinalizedEvent(bucket=BUCKET, object_path=path)
        )

        assert result.outcome == PipelineOutcome.COMPLETED
        stored = document_db.get("user_videos", "u1/vid7")
        assert stored["processingStatus"] == "ready"
        assert stored["thumbnailUrl"].startswith(
            f"https://storage.test/{BUCKET}/thumbnails/recording.webm.jpg"
        )

    async def test_long_audio_uses_long_running_recognition(
        self, make_pipeline, uploaded, transcoder, transcription, document_db
    ):
        transcoder.duration = 600.0
        transcription.operation = FakeOperation(transcription.results, polls_until_done=1)

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.COMPLETED
        assert transcription.long_running_calls == 1
        assert transcription.recognize_calls == 0
        assert _element(document_db)["transcript"] == "Hello team.\nShip it."


class TestStages:
    async def test_transcript_disabled(
        self, make_pipeline, uploaded, document_db, transcription, transcoder
    ):
        stages = PipelineStages(transcript=False)

        result = await make_pipeline(stages=stages).handle(uploaded)

        assert result.outcome == PipelineOutcome.COMPLETED
        assert transcription.recognize_calls == 0
        assert "extract_audio" not in transcoder.calls
        element = _element(document_db)
        assert "transcript" not in element
        first_write = document_db.update_if_calls[0]["updates"]["videos"][0]
        assert first_write["processingStatus"] == "processing"

    async def test_thumbnail_and_duration_disabled(
        self, make_pipeline, uploaded, document_db, blob_storage, transcoder
    ):
        stages = PipelineStages(thumbnail=False, duration=False)

        await make_pipeline(stages=stages).handle(uploaded)

        assert blob_storage.uploads == []
        assert transcoder.calls == ["extract_audio"]
        element = _element(document_db)
        assert "thumbnailUrl" not in element
        assert "durationSeconds" not in element

    async def test_summary(self, make_pipeline, uploaded, document_db):
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(return_value="Team agreed to ship.")

        await make_pipeline(
            stages=PipelineStages(summary=True), summarizer=summarizer
        ).handle(uploaded)

        summarizer.summarize.assert_awaited_once_with("Hello team.\nShip it.")
        assert _element(document_db)["summary"] == "Team agreed to ship."

    async def test_summary_skipped_for_blank_transcript(
        self, make_pipeline, uploaded, transcription, document_db
    ):
        transcription.results = []
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock()

        await make_pipeline(
            stages=PipelineStages(summary=True), summarizer=summarizer
        ).handle(uploaded)

        summarizer.summarize.assert_not_awaited()
        assert _element(document_db)["transcript"] == ""

    def test_summary_requires_summarizer(self, make_pipeline):
        with pytest.raises(ValueError, match="summarizer"):
            make_pipeline(stages=PipelineStages(summary=True))


class TestIgnoredEvents:
    async def test_outside_upload_prefix(self, make_pipeline, blob_storage, document_db):
        event = ObjectFinalizedEvent(
            bucket=BUCKET, object_path="thumbnails/abc123.webm.jpg"
        )

        result = await make_pipeline().handle(event)

        assert result.outcome == PipelineOutcome.SKIPPED
        assert blob_storage.downloaded_to == []
        assert document_db.update_if_calls == []

    async def test_required_suffix(self, make_pipeline, settings, uploaded, blob_storage):
        settings.pipeline.required_suffix = ".webm"
        mp4 = ObjectFinalizedEvent(bucket=BUCKET, object_path="videos/2024-W10/x.mp4")

        assert (await make_pipeline().handle(mp4)).outcome == PipelineOutcome.SKIPPED

    async def test_required_suffix_is_case_insensitive(
        self, make_pipeline, settings, blob_storage
    ):
        settings.pipeline.required_suffix = ".webm"
        path = "videos/2024-W10/abc123.WEBM"
        blob_storage.objects[(BUCKET, path)] = b"webm"

        result = await make_pipeline().handle(
            ObjectFinalizedEvent(bucket=BUCKET, object_path=path)
        )

        assert result.outcome == PipelineOutcome.COMPLETED

    @pytest.mark.parametrize(
        "object_path",
        ["videos/abc123.webm", "videos/a/b/c/d.webm", "videos/u1/vid7/clip.webm"],
    )
    async def test_unparseable_or_wrong_layout_is_dropped(
        self, make_pipeline, document_db, object_path
    ):
        result = await make_pipeline().handle(
            ObjectFinalizedEvent(bucket=BUCKET, object_path=object_path)
        )

        assert result.outcome == PipelineOutcome.DROPPED
        assert result.error.startswith("PathParseError:")
        assert document_db.update_if_calls == []

    async def test_redelivery_for_finished_record(
        self, make_pipeline, uploaded, document_db, transcoder
    ):
        pipeline = make_pipeline()
        await pipeline.handle(uploaded)
        writes = len(document_db.update_if_calls)
        transcoder.calls.clear()

        result = await pipeline.handle(uploaded)

        assert result.outcome == PipelineOutcome.ALREADY_TERMINAL
        assert result.status == ProcessingStatus.READY
        assert len(document_db.update_if_calls) == writes
        assert transcoder.calls == []


class TestFailures:
    async def test_transcode_failure_marks_error(
        self, make_pipeline, uploaded, transcoder, document_db, settings
    ):
        transcoder.fail_on = "extract_thumbnail"

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.FAILED
        element = _element(document_db)
        assert element["processingStatus"] == "error"
        assert element["lastError"].startswith("TranscodeError: extract_thumbnail failed")
        assert element["retryCount"] == 1
        assert "transcript" not in element
        assert _scratch_is_empty(settings)

    async def test_retry_count_accumulates(
        self, make_pipeline, uploaded, transcoder, document_db
    ):
        document_db.get("weeks", "2024-W10")["videos"][0]["retryCount"] = 2
        transcoder.fail_on = "probe_duration"

        await make_pipeline().handle(uploaded)

        assert _element(document_db)["retryCount"] == 3

    async def test_download_failure_keeps_counting_retries(
        self, make_pipeline, uploaded, blob_storage, document_db, settings
    ):
        document_db.get("weeks", "2024-W10")["videos"][0]["retryCount"] = 4
        blob_storage.download_error = ObjectStoreError(BUCKET, WEEK_PATH, "SlowDown")

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.FAILED
        element = _element(document_db)
        assert element["lastError"].startswith("ObjectStoreError:")
        assert element["retryCount"] == 5
        assert _scratch_is_empty(settings)

    async def test_transcription_timeout(
        self, make_pipeline, uploaded, transcoder, transcription, settings, document_db
    ):
        transcoder.duration = 600.0
        transcription.operation = FakeOperation([], polls_until_done=None)
        settings.transcription.timeout_seconds = 0

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.FAILED
        assert "did not finish" in _element(document_db)["lastError"]

    async def test_missing_record_writes_nothing(
        self, make_pipeline, blob_storage, document_db
    ):
        path = "videos/2024-W10/ghost.webm"
        blob_storage.objects[(BUCKET, path)] = b"webm"

        result = await make_pipeline().handle(
            ObjectFinalizedEvent(bucket=BUCKET, object_path=path)
        )

        assert result.outcome == PipelineOutcome.FAILED
        assert result.error.startswith("VideoRecordNotFoundError:")
        assert document_db.update_if_calls == []

    async def test_failed_error_write_propagates(
        self, make_pipeline, uploaded, transcoder, document_db, settings
    ):
        transcoder.fail_on = "extract_audio"

        def fail_second_write(db, collection, document_id):
            if len(db.update_if_calls) == 2:
                raise DocumentStoreError(collection, document_id, "write timeout")

        document_db.before_update_if = fail_second_write

        with pytest.raises(DocumentStoreError, match="write timeout"):
            await make_pipeline().handle(uploaded)

        assert _scratch_is_empty(settings)

    async def test_failed_final_write_propagates_without_error_write(
        self, make_pipeline, uploaded, document_db, settings
    ):
        def fail_second_write(db, collection, document_id):
            if len(db.update_if_calls) == 2:
                raise DocumentStoreError(collection, document_id, "write timeout")

        document_db.before_update_if = fail_second_write

        with pytest.raises(DocumentStoreError):
            await make_pipeline().handle(uploaded)

        assert len(document_db.update_if_calls) == 2
        assert _element(document_db)["processingStatus"] == "transcribing"
        assert _scratch_is_empty(settings)

    @pytest.mark.parametrize(
        "failure",
        [
            "download",
            "transcription_error",
            "transcription_timeout",
            "thumbnail_upload",
            "signed_url",
        ],
    )
    async def test_scratch_removed_after_failure(
        self,
        make_pipeline,
        uploaded,
        blob_storage,
        transcoder,
        transcription,
        settings,
        document_db,
        failure,
    ):
        if failure == "download":
            blob_storage.download_error = ObjectStoreError(BUCKET, WEEK_PATH, "reset")
        elif failure == "transcription_error":
            transcription.error = TranscriptionError("quota exceeded")
        elif failure == "transcription_timeout":
            transcoder.duration = 600.0
            transcription.operation = FakeOperation([], polls_until_done=None)
            settings.transcription.timeout_seconds = 0
        elif failure == "thumbnail_upload":
            blob_storage.upload_error = ObjectStoreError(BUCKET, "thumbnails", "denied")
        else:
            blob_storage.presign_error = ObjectStoreError(BUCKET, "thumbnails", "no key")

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.FAILED
        assert _element(document_db)["processingStatus"] == "error"
        assert _scratch_is_empty(settings)

    async def test_last_error_hides_scratch_paths(
        self, make_pipeline, uploaded, transcoder, document_db, settings
    ):
        async def unreadable(video_path):
            raise OSError(f"cannot open {video_path}")

        transcoder.probe_duration = unreadable

        await make_pipeline().handle(uploaded)

        last_error = _element(document_db)["lastError"]
        assert last_error == f"OSError: cannot open {WEEK_PATH}"
        assert str(settings.pipeline.scratch_dir) not in last_error


class TestStoredRecordShapes:
    async def test_legacy_failed_status_is_terminal(
        self, make_pipeline, uploaded, document_db, transcoder
    ):
        element = _element(document_db)
        del element["processingStatus"]
        element["status"] = "failed"

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.ALREADY_TERMINAL
        assert result.status == ProcessingStatus.ERROR
        assert document_db.update_if_calls == []
        assert transcoder.calls == []

    async def test_unreadable_record_fails_without_raising(
        self, make_pipeline, uploaded, document_db, settings
    ):
        _element(document_db)["visibility"] = "public"

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.FAILED
        assert result.error.startswith("InvalidVideoRecordError:")
        assert document_db.update_if_calls == []
        assert _scratch_is_empty(settings)

    async def test_null_fields_read_as_defaults(
        self, make_pipeline, uploaded, document_db
    ):
        element = _element(document_db)
        element["durationSeconds"] = None
        element["thumbnailUrl"] = None

        result = await make_pipeline().handle(uploaded)

        assert result.outcome == PipelineOutcome.COMPLETED
        assert _element(document_db)["durationSeconds"] == 12.5
