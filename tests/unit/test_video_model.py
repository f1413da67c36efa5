"""Unit tests for the video record model and status state machine."""

from datetime import UTC, datetime

import pytest

from src.domain.models.video import (
    IN_FLIGHT_STATUSES,
    TERMINAL_STATUSES,
    ProcessingStatus,
    VideoRecord,
    WeekRecord,
    can_transition,
)


class TestProcessingStatus:
    """Tests for ProcessingStatus enum."""

    def test_values(self):
        assert ProcessingStatus.PENDING == "pending"
        assert ProcessingStatus.PROCESSING == "processing"
        assert ProcessingStatus.TRANSCRIBING == "transcribing"
        assert ProcessingStatus.READY == "ready"
        assert ProcessingStatus.ERROR == "error"

    def test_groups(self):
        assert TERMINAL_STATUSES == {ProcessingStatus.READY, ProcessingStatus.ERROR}
        assert IN_FLIGHT_STATUSES == {
            ProcessingStatus.PROCESSING,
            ProcessingStatus.TRANSCRIBING,
        }


class TestCanTransition:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING),
            (ProcessingStatus.PENDING, ProcessingStatus.TRANSCRIBING),
            (ProcessingStatus.PENDING, ProcessingStatus.ERROR),
            (ProcessingStatus.PROCESSING, ProcessingStatus.TRANSCRIBING),
            (ProcessingStatus.PROCESSING, ProcessingStatus.READY),
            (ProcessingStatus.TRANSCRIBING, ProcessingStatus.TRANSCRIBING),
            (ProcessingStatus.TRANSCRIBING, ProcessingStatus.READY),
            (ProcessingStatus.TRANSCRIBING, ProcessingStatus.ERROR),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ProcessingStatus.PENDING, ProcessingStatus.READY),
            (ProcessingStatus.TRANSCRIBING, ProcessingStatus.PROCESSING),
            (ProcessingStatus.READY, ProcessingStatus.PROCESSING),
            (ProcessingStatus.READY, ProcessingStatus.ERROR),
            (ProcessingStatus.ERROR, ProcessingStatus.READY),
            (ProcessingStatus.ERROR, ProcessingStatus.TRANSCRIBING),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)


class TestVideoRecord:
    """Tests for VideoRecord model."""

    def test_defaults(self):
        record = VideoRecord(id="abc123")
        assert record.processing_status == ProcessingStatus.PENDING
        assert record.duration_seconds == 0
        assert record.thumbnail_url == ""
        assert record.transcript is None
        assert record.retry_count == 0
        assert not record.is_terminal
        assert not record.is_in_flight

    def test_from_camel_case_document(self):
        record = VideoRecord.from_document(
            {
                "id": "abc123",
                "ownerUserId": "u1",
                "processingStatus": "transcribing",
                "durationSeconds": 12.5,
                "thumbnailUrl": "https://x/y.jpg",
            }
        )
        assert record.owner_user_id == "u1"
        assert record.duration_seconds == 12.5
        assert record.is_in_flight

    def test_legacy_status_field(self):
        record = VideoRecord.from_document({"id": "abc123", "status": "ready"})
        assert record.processing_status == ProcessingStatus.READY
        assert record.is_terminal

    def test_legacy_failed_status_reads_as_error(self):
        record = VideoRecord.from_document({"id": "abc123", "status": "failed"})
        assert record.processing_status == ProcessingStatus.ERROR
        assert record.is_terminal

    def test_null_fields_read_as_defaults(self):
        record = VideoRecord.from_document(
            {
                "id": "abc123",
                "title": None,
                "durationSeconds": None,
                "thumbnailUrl": None,
                "retryCount": None,
            }
        )
        assert record.title == ""
        assert record.duration_seconds == 0
        assert record.thumbnail_url == ""
        assert record.retry_count == 0

    def test_unknown_visibility_rejected(self):
        with pytest.raises(ValueError):
            VideoRecord.from_document({"id": "abc123", "visibility": "public"})

    def test_processing_status_wins_over_legacy_field(self):
        record = VideoRecord.from_document(
            {"id": "abc123", "status": "ready", "processingStatus": "pending"}
        )
        assert record.processing_status == ProcessingStatus.PENDING

    def test_unknown_fields_preserved(self):
        record = VideoRecord.from_document({"id": "abc123", "reactions": {"like": 3}})
        assert record.to_document()["reactions"] == {"like": 3}

    def test_to_document_uses_camel_case(self):
        document = VideoRecord(id="abc123", retry_count=2).to_document()
        assert document["retryCount"] == 2
        assert document["processingStatus"] == "pending"
        assert "retry_count" not in document

    def test_negative_duration_rejected(self):
        with pytest.raises(ValueError):
            VideoRecord(id="abc123", duration_seconds=-1)


class TestToStorageFields:
    def test_aliases_and_enum_values(self):
        stored = VideoRecord.to_storage_fields(
            {
                "processing_status": ProcessingStatus.READY,
                "thumbnail_url": "https://x/y.jpg",
                "last_error": None,
            }
        )
        assert stored == {
            "processingStatus": "ready",
            "thumbnailUrl": "https://x/y.jpg",
            "lastError": None,
        }

    def test_datetime_serialized_as_iso_string(self):
        stored = VideoRecord.to_storage_fields(
            {"updated_at": datetime(2024, 3, 4, 9, 30, tzinfo=UTC)}
        )
        assert stored["updatedAt"] == "2024-03-04T09:30:00Z"

    def test_unknown_field_is_camel_cased(self):
        assert VideoRecord.to_storage_fields({"view_count": 3}) == {"viewCount": 3}


class TestWeekRecord:
    def test_find_video(self, week_document):
        week = WeekRecord.model_validate(week_document)
        assert week.version == 0
        assert week.find_video("sib999")["title"] == "Retro"
        assert week.find_video("missing") is None
