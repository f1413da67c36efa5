"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from src.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.llm import LLMServiceBase, OpenAILLMService
from src.infrastructure.transcription import (
    GoogleSpeechTranscription,
    TranscriptionServiceBase,
)
from src.infrastructure.video import FFmpegTranscoder, MediaTranscoderBase


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    owns them until ``close_all``. Nothing is constructed until first use.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance."""
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=blob_settings.endpoint,
                access_key=blob_settings.access_key,
                secret_key=blob_settings.secret_key,
                secure=blob_settings.use_ssl,
                region=blob_settings.region,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance."""
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_transcription_service(self) -> TranscriptionServiceBase:
        """Get speech recognition service instance."""
        if "transcription" not in self._instances:
            trans_settings = self._settings.transcription
            self._instances["transcription"] = GoogleSpeechTranscription(
                credentials_file=trans_settings.credentials_file,
                sync_max_duration_seconds=trans_settings.sync_max_duration_seconds,
                sync_max_bytes=trans_settings.sync_max_bytes,
                poll_initial_delay_seconds=trans_settings.poll_initial_delay_seconds,
                poll_max_delay_seconds=trans_settings.poll_max_delay_seconds,
                poll_multiplier=trans_settings.poll_multiplier,
                timeout_seconds=trans_settings.timeout_seconds,
            )
        return cast("TranscriptionServiceBase", self._instances["transcription"])

    def get_transcoder(self) -> MediaTranscoderBase:
        """Get media transcoder instance."""
        if "transcoder" not in self._instances:
            ffmpeg_settings = self._settings.transcoder
            self._instances["transcoder"] = FFmpegTranscoder(
                ffmpeg_path=ffmpeg_settings.ffmpeg_path,
                ffprobe_path=ffmpeg_settings.ffprobe_path,
                sample_rate=ffmpeg_settings.audio_sample_rate,
                channels=ffmpeg_settings.audio_channels,
                timeout_seconds=ffmpeg_settings.process_timeout_seconds,
            )
        return cast("MediaTranscoderBase", self._instances["transcoder"])

    def get_llm_service(self) -> LLMServiceBase:
        """Get LLM service instance.

        Raises:
            ValueError: If provider is not supported.
        """
        if "llm" not in self._instances:
            llm_settings = self._settings.llm
            provider = llm_settings.provider

            if provider in ("openai", "azure_openai"):
                self._instances["llm"] = OpenAILLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                    timeout_seconds=llm_settings.timeout_seconds,
                )
            else:
                raise ValueError(f"Unsupported LLM provider: {provider}")

        return cast("LLMServiceBase", self._instances["llm"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            if hasattr(instance, "close"):
                try:
                    close_result = instance.close()
                    if hasattr(close_result, "__await__"):
                        await close_result
                except Exception:
                    self._logger.warning(
                        "Failed to close client", extra={"client": name}, exc_info=True
                    )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
