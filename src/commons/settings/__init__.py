"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    BucketSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    LLMSettings,
    PipelineSettings,
    PipelineStageSettings,
    ReconciliationSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    TranscoderSettings,
    TranscriptionSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # Media & AI services
    "TranscoderSettings",
    "TranscriptionSettings",
    "LLMSettings",
    # Pipeline
    "PipelineSettings",
    "PipelineStageSettings",
    "ReconciliationSettings",
    # Telemetry
    "TelemetrySettings",
]
