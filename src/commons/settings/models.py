"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "teamzones-video-pipeline"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class BucketSettings(BaseModel):
    """Bucket name configuration."""

    uploads: str = "teamzones-uploads"


class BlobStorageSettings(BaseModel):
    """Blob storage settings (MinIO/S3)."""

    provider: Literal["minio", "s3"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    thumbnail_prefix: str = "thumbnails"
    # S3 presigned URLs cannot outlive 7 days
    presigned_url_expiry_seconds: int = Field(default=604800, ge=1, le=604800)


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    weeks: str = "weeks"
    user_videos: str = "user_videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "teamzones"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class TranscriptionSettings(BaseModel):
    """Speech recognition settings."""

    provider: Literal["google_speech"] = "google_speech"
    credentials_file: str | None = None
    language_code: str = "en-US"
    model: str = "video"
    use_enhanced: bool = True
    enable_automatic_punctuation: bool = True
    sample_rate_hertz: int = 16000
    # Above either limit the long-running API is used
    sync_max_duration_seconds: float = 60.0
    sync_max_bytes: int = 10 * 1024 * 1024
    poll_initial_delay_seconds: float = Field(default=2.0, gt=0)
    poll_max_delay_seconds: float = Field(default=30.0, gt=0)
    poll_multiplier: float = Field(default=2.0, ge=1)
    timeout_seconds: int = 540


class TranscoderSettings(BaseModel):
    """FFmpeg settings."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    audio_sample_rate: int = 16000
    audio_channels: int = 1
    thumbnail_width: int = 320
    thumbnail_height: int = 180
    thumbnail_timestamp_fraction: float = Field(default=0.5, ge=0, le=1)
    process_timeout_seconds: int = 300


class PipelineStageSettings(BaseModel):
    """Which pipeline stages run for each upload."""

    transcript: bool = True
    thumbnail: bool = True
    duration: bool = True
    summary: bool = False


class PipelineSettings(BaseModel):
    """Video ingestion pipeline settings."""

    upload_prefix: str = "videos/"
    required_suffix: str | None = None
    layout: Literal["week", "user"] = "week"
    stages: PipelineStageSettings = Field(default_factory=PipelineStageSettings)
    scratch_dir: str | None = None
    cas_max_attempts: int = Field(default=5, ge=1)
    last_error_max_length: int = Field(default=200, ge=20)
    # Deployment metadata, not read at runtime by the pipeline itself
    function_timeout_seconds: int = 540
    memory: str = "2GiB"


class LLMSettings(BaseModel):
    """LLM service settings (transcript summary)."""

    provider: Literal["openai", "azure_openai"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "gpt-4"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = 500
    timeout_seconds: int = 60


class ReconciliationSettings(BaseModel):
    """Sweep for records stuck in an in-flight status."""

    enabled: bool = False
    stale_after_minutes: int = Field(default=30, ge=1)
    last_error_message: str = "Processing timed out"


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    transcoder: TranscoderSettings = Field(default_factory=TranscoderSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    reconciliation: ReconciliationSettings = Field(
        default_factory=ReconciliationSettings
    )
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TEAMZONES__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
