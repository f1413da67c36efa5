"""Object-store event endpoint that triggers the ingestion pipeline."""

from typing import Annotated, Any

from fastapi import APIRouter, Body

from src.api.dependencies import PipelineDep
from src.application.dtos.ingestion import ObjectFinalizedEvent, PipelineResult

router = APIRouter()


@router.post(
    "/events/object-finalized",
    response_model=PipelineResult,
    summary="Process an uploaded video",
    description=(
        "Receives an object-finalized notification and runs the pipeline for "
        "the object. Answers 200 for every pipeline outcome, including failed "
        "runs whose error status was recorded. Answers 5xx only when a status "
        "write failed, so the notification is redelivered."
    ),
)
async def object_finalized(
    payload: Annotated[dict[str, Any], Body()],
    pipeline: PipelineDep,
) -> PipelineResult:
    """Run the pipeline for one notification."""
    event = ObjectFinalizedEvent.from_payload(payload)
    return await pipeline.handle(event)
