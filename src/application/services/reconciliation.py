"""Sweep for records left in an in-flight status by a crashed run."""

from datetime import UTC, datetime, timedelta

from src.application.dtos.ingestion import ReconciliationReport
from src.application.services.video_store import VideoStoreBase
from src.commons.settings.models import ReconciliationSettings
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    InvalidStatusTransitionError,
    InvalidVideoRecordError,
    RecordChangedError,
    VideoRecordNotFoundError,
)
from src.domain.models.video import IN_FLIGHT_STATUSES, ProcessingStatus


class StaleVideoReconciler:
    """Moves records stuck in processing/transcribing to error.

    A run killed by the platform timeout never writes a terminal status.
    Anything in flight for longer than ``stale_after_minutes`` is treated
    as one of those. A record touched between the query and the write is
    left alone and counted as skipped.
    """

    def __init__(
        self,
        video_store: VideoStoreBase,
        settings: ReconciliationSettings,
    ) -> None:
        self._store = video_store
        self._settings = settings
        self._logger = get_logger(__name__)

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    async def sweep(self, now: datetime | None = None) -> ReconciliationReport:
        """Mark every stale in-flight record as failed.

        Args:
            now: Reference time. Defaults to the current UTC time.

        Returns:
            Counts of examined, updated and skipped records.
        """
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(minutes=self._settings.stale_after_minutes)

        stale = await self._store.find_stale(IN_FLIGHT_STATUSES, cutoff)
        report = ReconciliationReport(examined=len(stale))

        for target, record in stale:
            try:
                await self._store.merge(
                    target,
                    {
                        "processing_status": ProcessingStatus.ERROR,
                        "last_error": self._settings.last_error_message,
                        "updated_at": now,
                    },
                    expected_updated_at=record.updated_at,
                    increment_retry_count=True,
                )
            except (
                InvalidStatusTransitionError,
                InvalidVideoRecordError,
                RecordChangedError,
                VideoRecordNotFoundError,
            ) as e:
                self._logger.info(
                    "Stale record changed before sweep",
                    extra={"target": str(target), "reason": str(e)},
                )
                report.skipped += 1
                continue
            report.marked_error.append(str(target))

        self._logger.info(
            "Reconciliation sweep finished",
            extra={
                "examined": report.examined,
                "marked_error": len(report.marked_error),
                "skipped": report.skipped,
                "cutoff": cutoff.isoformat(),
            },
        )
        return report
