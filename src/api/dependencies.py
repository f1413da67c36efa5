"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.application.services.ingestion import VideoIngestionPipeline
from src.application.services.reconciliation import StaleVideoReconciler
from src.application.services.summarization import TranscriptSummarizer
from src.application.services.video_store import (
    EmbeddedWeekVideoStore,
    UserVideoStore,
    VideoStoreBase,
)
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers."""
    return get_factory(settings)


def get_video_store(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoStoreBase:
    """Get the record store for the configured upload path layout."""
    collections = settings.document_db.collections
    max_attempts = settings.pipeline.cas_max_attempts

    if settings.pipeline.layout == "user":
        return UserVideoStore(
            factory.get_document_db(),
            collections.user_videos,
            max_attempts=max_attempts,
        )
    return EmbeddedWeekVideoStore(
        factory.get_document_db(),
        collections.weeks,
        max_attempts=max_attempts,
    )


def get_ingestion_pipeline(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    video_store: Annotated[VideoStoreBase, Depends(get_video_store)],
) -> VideoIngestionPipeline:
    """Get the ingestion pipeline with all dependencies.

    The LLM client is only built when the summary stage is enabled.
    """
    summarizer = None
    if settings.pipeline.stages.summary:
        summarizer = TranscriptSummarizer(factory.get_llm_service(), settings.llm)

    return VideoIngestionPipeline(
        blob_storage=factory.get_blob_storage(),
        transcoder=factory.get_transcoder(),
        transcription_service=factory.get_transcription_service(),
        video_store=video_store,
        settings=settings,
        summarizer=summarizer,
    )


def get_reconciler(
    settings: Annotated[Settings, Depends(get_settings)],
    video_store: Annotated[VideoStoreBase, Depends(get_video_store)],
) -> StaleVideoReconciler:
    """Get the stale-record reconciler."""
    return StaleVideoReconciler(video_store, settings.reconciliation)


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
PipelineDep = Annotated[VideoIngestionPipeline, Depends(get_ingestion_pipeline)]
ReconcilerDep = Annotated[StaleVideoReconciler, Depends(get_reconciler)]


async def init_services(settings: Settings) -> None:
    """Initialize infrastructure services on startup."""
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    factory.get_blob_storage()
    factory.get_document_db()


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
