"""Video record access for both storage shapes.

A week-layout upload updates one element of ``weeks/{weekId}.videos``;
a user-layout upload updates a standalone document. Both stores validate
status writes against the processing state machine and write with a
compare-and-swap so that a concurrent run never loses an update.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    DocumentStoreError,
    InvalidStatusTransitionError,
    InvalidVideoRecordError,
    RecordChangedError,
    VideoRecordNotFoundError,
)
from src.domain.models.video import (
    ProcessingStatus,
    VideoRecord,
    WeekRecord,
    can_transition,
    parse_status,
)
from src.domain.value_objects.object_path import PathLayout, VideoObjectPath

_DATETIME = TypeAdapter(datetime)


@dataclass(frozen=True)
class VideoTarget:
    """Coordinates of one video record."""

    layout: PathLayout
    parent_id: str  # weekId or userId
    video_id: str

    @classmethod
    def from_path(cls, path: VideoObjectPath) -> VideoTarget:
        return cls(layout=path.layout, parent_id=path.parent_id, video_id=path.video_id)

    def __str__(self) -> str:
        return f"{self.parent_id}/{self.video_id}"


def _parse_record(target: VideoTarget, document: dict[str, Any]) -> VideoRecord:
    try:
        return VideoRecord.from_document(document)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "record"
        raise InvalidVideoRecordError(
            target.parent_id, target.video_id, f"{field}: {first['msg']}"
        ) from e


def _stored_updated_at(current: dict[str, Any]) -> datetime | None:
    try:
        return _DATETIME.validate_python(current.get("updatedAt"))
    except ValidationError:
        return None


def _apply_updates(
    target: VideoTarget,
    current: dict[str, Any],
    stored_updates: dict[str, Any],
    expected_updated_at: datetime | None,
    increment_retry_count: bool,
) -> dict[str, Any]:
    """Check the write against the current element and return the fields to set.

    Raises:
        RecordChangedError: If ``updatedAt`` differs from ``expected_updated_at``.
        InvalidStatusTransitionError: If the status change is not allowed.
        InvalidVideoRecordError: If the stored status is unreadable.
    """
    if expected_updated_at is not None:
        if _stored_updated_at(current) != expected_updated_at:
            raise RecordChangedError(target.parent_id, target.video_id)

    new_status = stored_updates.get("processingStatus")
    if new_status is not None:
        raw = current.get("processingStatus", current.get("status", "pending"))
        try:
            current_status = parse_status(raw)
        except ValueError as e:
            raise InvalidVideoRecordError(
                target.parent_id, target.video_id, f"processingStatus: {raw!r}"
            ) from e
        target_status = ProcessingStatus(new_status)
        if not can_transition(current_status, target_status):
            raise InvalidStatusTransitionError(
                target.video_id, current_status, target_status
            )

    updates = dict(stored_updates)
    if increment_retry_count:
        retries = current.get("retryCount")
        updates["retryCount"] = (retries if isinstance(retries, int) else 0) + 1
    return updates


def _stale_filter(
    statuses: Iterable[ProcessingStatus],
    updated_before: datetime,
) -> dict[str, Any]:
    cutoff = VideoRecord.to_storage_fields({"updated_at": updated_before})["updatedAt"]
    return {
        "processingStatus": {"$in": [s.value for s in statuses]},
        "updatedAt": {"$lt": cutoff},
    }


class VideoStoreBase(ABC):
    """Reads and merges video records for one path layout."""

    layout: PathLayout

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str,
        max_attempts: int = 5,
    ) -> None:
        """Initialize the store.

        Args:
            document_db: Document database client.
            collection: Collection holding the records.
            max_attempts: Compare-and-swap attempts before giving up.
        """
        self._db = document_db
        self._collection = collection
        self._max_attempts = max_attempts
        self._logger = get_logger(__name__)

    @abstractmethod
    async def get(self, target: VideoTarget) -> VideoRecord | None:
        """Read the record, None if it does not exist.

        Raises:
            InvalidVideoRecordError: If the stored record cannot be read.
        """

    @abstractmethod
    async def merge(
        self,
        target: VideoTarget,
        updates: dict[str, Any],
        *,
        expected_updated_at: datetime | None = None,
        increment_retry_count: bool = False,
    ) -> VideoRecord:
        """Merge field updates into the record.

        Args:
            target: Record to update.
            updates: New values keyed by ``VideoRecord`` field name. Fields
                not named are left untouched; a None value is written as null.
            expected_updated_at: Only write if the stored ``updatedAt`` still
                equals this value.
            increment_retry_count: Set ``retryCount`` to the stored count
                plus one, read in the same compare-and-swap as the write.

        Returns:
            The record as written.

        Raises:
            VideoRecordNotFoundError: If the record does not exist.
            RecordChangedError: If the ``expected_updated_at`` guard fails.
            InvalidStatusTransitionError: If the status change is not allowed.
            InvalidVideoRecordError: If the merged record would be unreadable.
            DocumentStoreError: If the write fails or keeps conflicting.
        """

    @abstractmethod
    async def find_stale(
        self,
        statuses: Iterable[ProcessingStatus],
        updated_before: datetime,
        limit: int = 100,
    ) -> list[tuple[VideoTarget, VideoRecord]]:
        """Records in one of ``statuses`` not updated since ``updated_before``."""

    def _conflict(self, target: VideoTarget, document_id: str) -> DocumentStoreError:
        return DocumentStoreError(
            self._collection,
            document_id,
            f"concurrent update of {target} after {self._max_attempts} attempts",
        )

    def _skip_invalid(self, error: InvalidVideoRecordError) -> None:
        self._logger.warning(
            "Skipping unreadable video record",
            extra={"reason": str(error)},
        )


class EmbeddedWeekVideoStore(VideoStoreBase):
    """Videos embedded as an array in ``weeks/{weekId}``.

    Every write is a read-modify-write of the whole array. Only the element
    whose ``id`` matches is replaced; siblings are written back as read.
    The week's ``version`` field guards the write.
    """

    layout = PathLayout.WEEK

    async def get(self, target: VideoTarget) -> VideoRecord | None:
        document = await self._db.find_by_id(self._collection, target.parent_id)
        if document is None:
            return None
        element = WeekRecord.model_validate(document).find_video(target.video_id)
        return _parse_record(target, element) if element is not None else None

    async def merge(
        self,
        target: VideoTarget,
        updates: dict[str, Any],
        *,
        expected_updated_at: datetime | None = None,
        increment_retry_count: bool = False,
    ) -> VideoRecord:
        stored_updates = VideoRecord.to_storage_fields(updates)

        for attempt in range(1, self._max_attempts + 1):
            document = await self._db.find_by_id(self._collection, target.parent_id)
            if document is None:
                raise VideoRecordNotFoundError(target.parent_id, target.video_id)

            videos: list[dict[str, Any]] = list(document.get("videos") or [])
            index = next(
                (i for i, v in enumerate(videos) if v.get("id") == target.video_id),
                None,
            )
            if index is None:
                raise VideoRecordNotFoundError(target.parent_id, target.video_id)

            merged = {
                **videos[index],
                **_apply_updates(
                    target,
                    videos[index],
                    stored_updates,
                    expected_updated_at,
                    increment_retry_count,
                ),
            }
            record = _parse_record(target, merged)
            videos[index] = merged

            # A week written before versioning has no field; $set adds it
            version = document.get("version")
            written = await self._db.update_if(
                self._collection,
                target.parent_id,
                expected={"version": version},
                updates={"videos": videos, "version": (version or 0) + 1},
            )
            if written:
                return record

            self._logger.warning(
                "Week document changed during update, retrying",
                extra={"week_id": target.parent_id, "attempt": attempt},
            )

        raise self._conflict(target, target.parent_id)

    async def find_stale(
        self,
        statuses: Iterable[ProcessingStatus],
        updated_before: datetime,
        limit: int = 100,
    ) -> list[tuple[VideoTarget, VideoRecord]]:
        element_filter = _stale_filter(statuses, updated_before)
        weeks = await self._db.find(
            self._collection,
            {"videos": {"$elemMatch": element_filter}},
            limit=limit,
        )

        wanted = set(element_filter["processingStatus"]["$in"])
        cutoff = element_filter["updatedAt"]["$lt"]
        stale: list[tuple[VideoTarget, VideoRecord]] = []
        for week in weeks:
            for element in week.get("videos") or []:
                if element.get("processingStatus") in wanted and str(
                    element.get("updatedAt", "")
                ) < cutoff:
                    target = VideoTarget(self.layout, week["id"], element["id"])
                    try:
                        stale.append((target, _parse_record(target, element)))
                    except InvalidVideoRecordError as e:
                        self._skip_invalid(e)
        return stale[:limit]


class UserVideoStore(VideoStoreBase):
    """One document per video, keyed ``{userId}/{videoId}``."""

    layout = PathLayout.USER

    @staticmethod
    def document_id(target: VideoTarget) -> str:
        return f"{target.parent_id}/{target.video_id}"

    def _to_record(self, target: VideoTarget, document: dict[str, Any]) -> VideoRecord:
        return _parse_record(
            target, {"ownerUserId": target.parent_id, **document, "id": target.video_id}
        )

    async def get(self, target: VideoTarget) -> VideoRecord | None:
        document = await self._db.find_by_id(self._collection, self.document_id(target))
        return self._to_record(target, document) if document is not None else None

    async def merge(
        self,
        target: VideoTarget,
        updates: dict[str, Any],
        *,
        expected_updated_at: datetime | None = None,
        increment_retry_count: bool = False,
    ) -> VideoRecord:
        stored_updates = VideoRecord.to_storage_fields(updates)
        document_id = self.document_id(target)

        for attempt in range(1, self._max_attempts + 1):
            document = await self._db.find_by_id(self._collection, document_id)
            if document is None:
                raise VideoRecordNotFoundError(target.parent_id, target.video_id)

            fields = _apply_updates(
                target,
                document,
                stored_updates,
                expected_updated_at,
                increment_retry_count,
            )
            record = self._to_record(target, {**document, **fields})

            expected = {"processingStatus": document.get("processingStatus")}
            if expected_updated_at is not None or increment_retry_count:
                expected["updatedAt"] = document.get("updatedAt")
            if increment_retry_count:
                expected["retryCount"] = document.get("retryCount")

            written = await self._db.update_if(
                self._collection,
                document_id,
                expected=expected,
                updates=fields,
            )
            if written:
                return record

            self._logger.warning(
                "Video document changed during update, retrying",
                extra={"document_id": document_id, "attempt": attempt},
            )

        raise self._conflict(target, document_id)

    async def find_stale(
        self,
        statuses: Iterable[ProcessingStatus],
        updated_before: datetime,
        limit: int = 100,
    ) -> list[tuple[VideoTarget, VideoRecord]]:
        documents = await self._db.find(
            self._collection,
            _stale_filter(statuses, updated_before),
            limit=limit,
        )

        stale: list[tuple[VideoTarget, VideoRecord]] = []
        for document in documents:
            user_id, _, video_id = document["id"].partition("/")
            target = VideoTarget(self.layout, user_id, video_id)
            try:
                stale.append((target, self._to_record(target, document)))
            except InvalidVideoRecordError as e:
                self._skip_invalid(e)
        return stale
