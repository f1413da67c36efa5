"""Per-run scratch directory for downloaded and derived media."""

import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from src.commons.telemetry import get_logger


class ScratchSpace:
    """A private temporary directory removed when the block exits.

    Removal failures are logged, never raised, so they cannot mask the
    outcome of the run that used the directory.

    Example:
        with ScratchSpace(prefix="video-") as scratch:
            video_file = scratch / "upload.webm"
    """

    def __init__(self, base_dir: str | Path | None = None, prefix: str = "video-") -> None:
        """Initialize the scratch space.

        Args:
            base_dir: Parent directory. Defaults to the system temp dir.
            prefix: Directory name prefix.
        """
        self._base_dir = Path(base_dir) if base_dir else None
        self._prefix = prefix
        self._path: Path | None = None
        self._logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Scratch space used outside its 'with' block")
        return self._path

    def __enter__(self) -> Path:
        if self._base_dir is not None:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        self._path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._base_dir))
        return self._path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Remove the directory and everything in it."""
        if self._path is None:
            return
        path, self._path = self._path, None
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError:
            self._logger.warning(
                "Failed to remove scratch directory",
                extra={"scratch_dir": str(path)},
                exc_info=True,
            )
