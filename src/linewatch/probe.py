"""Per-file probing with bounded retry on locked files."""

import logging
import os
import time
from pathlib import Path
from typing import Callable

from .config import DEFAULT_LOCK_WAIT_MS, DEFAULT_RETRY_INTERVAL_MS, WatcherConfig
from .exceptions import LockTimeoutError, ProbeError
from .models import FileRecord

logger = logging.getLogger(__name__)


class FileProbe:
    """
    Reads a file's modification time and line count.

    A file held open exclusively by another process shows up as a
    PermissionError. Such a file is retried every `retry_interval_ms`
    until `lock_wait_ms` has passed, after which LockTimeoutError is
    raised. A file that disappears before it can be read yields the
    deleted marker instead of an error.
    """

    def __init__(
        self,
        lock_wait_ms: int = DEFAULT_LOCK_WAIT_MS,
        retry_interval_ms: int = DEFAULT_RETRY_INTERVAL_MS,
        encoding: str = "utf-8",
        opener: Callable = open,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the probe.

        Args:
            lock_wait_ms: Maximum time to keep retrying a locked file
            retry_interval_ms: Pause between two attempts
            encoding: Text encoding for reading lines
            opener: Callable with the signature of open()
            sleep: Callable used to wait between attempts
            clock: Monotonic clock in seconds
        """
        self.lock_wait_ms = lock_wait_ms
        self.retry_interval_ms = retry_interval_ms
        self.encoding = encoding
        self._opener = opener
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: WatcherConfig, **kwargs) -> "FileProbe":
        return cls(
            lock_wait_ms=config.lock_wait_ms,
            retry_interval_ms=config.retry_interval_ms,
            encoding=config.encoding,
            **kwargs,
        )

    def probe(self, path: Path) -> FileRecord:
        """
        Probe a single file.

        Args:
            path: Path to the file

        Returns:
            FileRecord with timestamp and line count, or the deleted
            marker if the file no longer exists

        Raises:
            LockTimeoutError: If the file stayed locked past the wait budget
            ProbeError: If the file could not be read for another reason
        """
        budget = self.lock_wait_ms / 1000.0
        started = self._clock()
        attempts = 0

        while True:
            attempts += 1
            try:
                return self._read(path)
            except FileNotFoundError:
                logger.debug(f"File vanished while probing: {path}")
                return FileRecord.deleted_marker(path)
            except PermissionError as e:
                if self._clock() - started >= budget:
                    raise LockTimeoutError(
                        f"File [{path}] is locked for more than {self.lock_wait_ms} ms "
                        f"({attempts} attempts)"
                    ) from e
                logger.debug(f"File is locked, retrying in {self.retry_interval_ms} ms: {path}")
                self._sleep(self.retry_interval_ms / 1000.0)
            except OSError as e:
                raise ProbeError(f"Cannot read [{path}]: {e}") from e

    def _read(self, path: Path) -> FileRecord:
        """Open the file once, stat the handle and count its lines."""
        with self._opener(path, "r", encoding=self.encoding, errors="replace", newline=None) as f:
            modified = os.fstat(f.fileno()).st_mtime_ns
            count = count_lines(f)
        return FileRecord(path=path, last_modified=modified, line_count=count)


def count_lines(stream) -> int:
    """
    Count lines the way a line reader sees them.

    An unterminated last line still counts; an empty stream has no lines.
    """
    count = 0
    for _ in stream:
        count += 1
    return count
