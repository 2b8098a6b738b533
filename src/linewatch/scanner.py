"""Single-level directory listing filtered by a file mask."""

import logging
import os
from pathlib import Path
from typing import FrozenSet

from watchdog.utils.dirsnapshot import DirectorySnapshot

from .config import WatcherConfig
from .exceptions import ScanError

logger = logging.getLogger(__name__)


class Scanner:
    """
    Lists the files of a directory that match the configured mask.

    Only the top level is listed. Subdirectories are skipped even when
    their name matches the mask.
    """

    def __init__(self, config: WatcherConfig):
        """
        Initialize the scanner.

        Args:
            config: Watcher configuration providing directory and mask
        """
        self.config = config
        self.directory = Path(os.path.abspath(config.directory))

    def scan(self) -> FrozenSet[Path]:
        """
        List matching files.

        Returns:
            Frozen set of absolute file paths

        Raises:
            ScanError: If the directory is missing, is not a directory,
                or cannot be read
        """
        root = str(self.directory)
        try:
            snapshot = DirectorySnapshot(root, recursive=False)
        except OSError as e:
            raise ScanError(f"Cannot list directory {self.directory}: {e}") from e

        if not snapshot.isdir(root):
            raise ScanError(f"Not a directory: {self.directory}")

        files = frozenset(
            Path(p)
            for p in snapshot.paths
            if p != root and not snapshot.isdir(p) and self.config.matches(Path(p))
        )
        logger.debug(f"Scanned {self.directory}: {len(files)} matching file(s)")
        return files
