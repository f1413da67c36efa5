"""FFmpeg implementation of media transcoding."""

import asyncio
import json
import subprocess
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import TranscodeError
from src.infrastructure.video.base import MediaTranscoderBase


class FFmpegTranscoder(MediaTranscoderBase):
    """FFmpeg-based audio extraction, thumbnailing and probing.

    Requires ffmpeg and ffprobe to be installed and available in PATH.
    Each operation is a single blocking process run in the default executor.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        sample_rate: int = 16000,
        channels: int = 1,
        timeout_seconds: float = 300,
    ) -> None:
        """Initialize FFmpeg transcoder.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            sample_rate: Audio sample rate for extracted WAV.
            channels: Audio channel count for extracted WAV.
            timeout_seconds: Kill a process running longer than this.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._sample_rate = sample_rate
        self._channels = channels
        self._timeout = timeout_seconds
        self._logger = get_logger(__name__)

    @timed(operation="extract_audio")
    async def extract_audio(
        self,
        video_path: Path,
        output_path: Path | None = None,
    ) -> Path:
        """Extract the audio track as mono 16 kHz ``pcm_s16le`` WAV."""
        output_path = output_path or video_path.with_suffix(".wav")

        cmd = [
            self._ffmpeg,
            "-i",
            str(video_path),
            "-vn",
            "-acodec",
            "pcm_s16le",
            "-ar",
            str(self._sample_rate),
            "-ac",
            str(self._channels),
            "-y",
            str(output_path),
        ]

        await self._run(cmd, "extract_audio", video_path, output_path)
        return output_path

    @timed(operation="extract_thumbnail")
    async def extract_thumbnail(
        self,
        video_path: Path,
        timestamp_fraction: float = 0.5,
        output_path: Path | None = None,
        size: tuple[int, int] = (320, 180),
        duration_seconds: float | None = None,
    ) -> Path:
        """Capture one JPEG frame scaled to ``size``."""
        output_path = output_path or video_path.with_suffix(".jpg")

        if duration_seconds is None:
            duration_seconds = await self.probe_duration(video_path)
        timestamp = max(0.0, duration_seconds * timestamp_fraction)

        width, height = size
        cmd = [
            self._ffmpeg,
            "-ss",
            f"{timestamp:.3f}",
            "-i",
            str(video_path),
            "-vframes",
            "1",
            "-vf",
            f"scale={width}:{height}",
            "-q:v",
            "2",
            "-y",
            str(output_path),
        ]

        await self._run(cmd, "extract_thumbnail", video_path, output_path)

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(
            None, self._verify_image, output_path, size, video_path
        )
        return output_path

    @timed(operation="probe_duration")
    async def probe_duration(self, video_path: Path) -> float:
        """Read ``format.duration`` via ffprobe."""
        cmd = [
            self._ffprobe,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            str(video_path),
        ]

        result = await self._run(cmd, "probe_duration", video_path)

        try:
            data = json.loads(result.stdout)
            duration = data.get("format", {}).get("duration")
            # WebM from MediaRecorder often has no duration in the header
            return float(duration) if duration not in (None, "N/A") else 0.0
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            raise TranscodeError(
                "probe_duration", str(video_path), f"malformed probe output: {e}"
            ) from e

    async def _run(
        self,
        cmd: list[str],
        operation: str,
        source: Path,
        output_path: Path | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """Run one ffmpeg/ffprobe process, translating every failure.

        Args:
            cmd: Command line.
            operation: Operation name for errors and logs.
            source: Input media path.
            output_path: Expected output file, removed on failure.
        """
        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)

        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: subprocess.run(
                    cmd, capture_output=True, check=True, timeout=self._timeout
                ),
            )
        except subprocess.CalledProcessError as e:
            _remove_partial(output_path)
            raise TranscodeError(
                operation, str(source), _decode(e.stderr)
            ) from e
        except subprocess.TimeoutExpired as e:
            _remove_partial(output_path)
            raise TranscodeError(
                operation, str(source), f"timed out after {self._timeout}s"
            ) from e
        except OSError as e:
            # Executable missing or not runnable
            _remove_partial(output_path)
            raise TranscodeError(operation, str(source), str(e)) from e

        if output_path is not None and (
            not output_path.exists() or output_path.stat().st_size == 0
        ):
            _remove_partial(output_path)
            raise TranscodeError(
                operation,
                str(source),
                _decode(result.stderr) or "no output file written",
            )

        self._logger.debug(
            f"{operation} finished",
            extra={"source": str(source), "command": cmd[0]},
        )
        return result

    @staticmethod
    def _verify_image(path: Path, size: tuple[int, int], source: Path) -> None:
        """Check the frame decodes, and force it to ``size`` if it does not match."""
        try:
            with Image.open(path) as img:
                img.load()
                if img.size == size:
                    return
                resized = img.convert("RGB").resize(size, Image.Resampling.LANCZOS)
            resized.save(path, format="JPEG", quality=90)
        except (UnidentifiedImageError, OSError) as e:
            _remove_partial(path)
            raise TranscodeError(
                "extract_thumbnail", str(source), f"unreadable frame: {e}"
            ) from e


def _decode(stderr: bytes | str | None) -> str:
    if stderr is None:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode("utf-8", errors="replace")
    return stderr


def _remove_partial(path: Path | None) -> None:
    if path is not None:
        path.unlink(missing_ok=True)
