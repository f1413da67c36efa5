"""Shared fixtures for unit tests."""

import pytest

from src.commons.settings.models import Settings
from tests.unit.fakes import (
    FakeBlobStorage,
    FakeDocumentDB,
    FakeTranscoder,
    FakeTranscription,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path):
    """Real settings with scratch space under the test's temp dir."""
    settings = Settings()
    settings.pipeline.scratch_dir = str(tmp_path / "scratch")
    return settings


@pytest.fixture
def document_db():
    return FakeDocumentDB()


@pytest.fixture
def blob_storage():
    return FakeBlobStorage()


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def transcription():
    return FakeTranscription()


@pytest.fixture
def week_document():
    """A week holding the uploaded video and one untouched sibling."""
    return {
        "id": "2024-W10",
        "videos": [
            {
                "id": "abc123",
                "title": "Standup",
                "ownerUserId": "u1",
                "processingStatus": "pending",
                "retryCount": 0,
                "createdAt": "2024-03-04T09:00:00Z",
                "updatedAt": "2024-03-04T09:00:00Z",
            },
            {
                "id": "sib999",
                "title": "Retro",
                "ownerUserId": "u2",
                "processingStatus": "ready",
                "transcript": "Sibling transcript",
                "thumbnailUrl": "https://storage.test/old.jpg",
                "durationSeconds": 42.0,
                "updatedAt": "2024-03-01T09:00:00Z",
            },
        ],
    }
