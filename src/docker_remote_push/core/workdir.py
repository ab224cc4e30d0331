"""Scoped temporary working directory for a single transfer."""

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from ..exceptions import RemotePushError

logger = logging.getLogger(__name__)


class WorkDir:
    """A private scratch directory removed when the context exits.

    Cleanup runs on normal exit, on errors and on interrupts, since all
    of them unwind through `__exit__`.
    """

    ARCHIVE_NAME = "image.tar"

    def __init__(
        self, prefix: str = "docker-remote-push-", base_dir: Optional[str] = None
    ) -> None:
        self.prefix = prefix
        self.base_dir = base_dir
        self._path: Optional[Path] = None

    def __enter__(self) -> "WorkDir":
        self._path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.base_dir))
        logger.debug("Created working directory %s", self._path)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def close(self) -> None:
        """Remove the directory and everything in it."""
        if self._path is not None:
            shutil.rmtree(self._path, ignore_errors=True)
            logger.debug("Removed working directory %s", self._path)
            self._path = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RemotePushError("Working directory is not open")
        return self._path

    @property
    def archive_path(self) -> Path:
        """Where the exported image archive is written."""
        return self.path / self.ARCHIVE_NAME
