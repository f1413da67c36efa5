"""Data Transfer Objects for application layer."""

from src.application.dtos.ingestion import (
    ObjectFinalizedEvent,
    PipelineOutcome,
    PipelineResult,
    PipelineStages,
    ReconciliationReport,
)

__all__ = [
    "ObjectFinalizedEvent",
    "PipelineOutcome",
    "PipelineResult",
    "PipelineStages",
    "ReconciliationReport",
]
