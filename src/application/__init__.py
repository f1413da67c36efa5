"""Application layer - use cases and orchestration.

This layer contains:
- Services: the ingestion pipeline, record stores and maintenance sweep
- DTOs: event payloads and pipeline results for the API boundary
"""

from src.application.dtos import (
    ObjectFinalizedEvent,
    PipelineOutcome,
    PipelineResult,
    PipelineStages,
    ReconciliationReport,
)
from src.application.services import (
    EmbeddedWeekVideoStore,
    StaleVideoReconciler,
    UserVideoStore,
    VideoIngestionPipeline,
    VideoTarget,
)

__all__ = [
    # DTOs
    "ObjectFinalizedEvent",
    "PipelineOutcome",
    "PipelineResult",
    "PipelineStages",
    "ReconciliationReport",
    # Services
    "EmbeddedWeekVideoStore",
    "StaleVideoReconciler",
    "UserVideoStore",
    "VideoIngestionPipeline",
    "VideoTarget",
]
