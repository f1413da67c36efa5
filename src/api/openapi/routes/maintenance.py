"""Maintenance endpoints."""

from fastapi import APIRouter, status

from src.api.dependencies import ReconcilerDep
from src.api.middleware.error_handler import APIError
from src.application.dtos.ingestion import ReconciliationReport

router = APIRouter()


@router.post(
    "/maintenance/reconcile",
    response_model=ReconciliationReport,
    summary="Fail stale in-flight videos",
    description=(
        "Moves records stuck in processing or transcribing past the configured "
        "age to error. Meant to be called by a scheduler."
    ),
)
async def reconcile(reconciler: ReconcilerDep) -> ReconciliationReport:
    """Run one reconciliation sweep."""
    if not reconciler.enabled:
        raise APIError(
            code="RECONCILIATION_DISABLED",
            message="Reconciliation is disabled in configuration",
            status_code=status.HTTP_409_CONFLICT,
        )
    return await reconciler.sweep()
