"""Configuration for the linewatch package."""

import codecs
import functools
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_INTERVAL_MS = 10_000
DEFAULT_LOCK_WAIT_MS = 5_000
DEFAULT_RETRY_INTERVAL_MS = 100

_WINDOWS_INVALID_CHARS = set('<>:"|') | {chr(c) for c in range(32)}


def validate_mask(mask: str) -> str:
    """
    Check that a file mask is a legal file name pattern.

    Only `*` and `?` wildcards are meaningful; path separators and
    characters the platform forbids in file names are rejected.

    Args:
        mask: File name mask, e.g. "*.txt"

    Returns:
        The mask, unchanged

    Raises:
        ValueError: If the mask is empty or contains invalid characters
    """
    if not mask:
        raise ValueError("File mask must not be empty")

    invalid = {"\0", os.sep}
    if os.altsep:
        invalid.add(os.altsep)
    if sys.platform == "win32":
        invalid |= _WINDOWS_INVALID_CHARS

    bad = sorted(c for c in set(mask) if c in invalid)
    if bad:
        raise ValueError(f"Invalid characters in file mask: {bad!r}")
    return mask


@functools.lru_cache(maxsize=64)
def mask_to_regex(mask: str) -> "re.Pattern":
    """
    Compile a file mask where only `*` and `?` are wildcards.

    Every other character, `[` and `]` included, matches literally.
    Matching is case-insensitive on Windows.
    """
    parts = []
    for char in mask:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    flags = re.DOTALL
    if sys.platform == "win32":
        flags |= re.IGNORECASE
    return re.compile("".join(parts), flags)


@dataclass
class WatcherConfig:
    """
    Configuration options for a directory watcher.

    Attributes:
        directory: Directory to watch (single level, no recursion)
        mask: File name mask with `*`/`?` wildcards
        interval_ms: Nominal interval between the start of two scans
        lock_wait_ms: How long a locked file is retried before giving up
        retry_interval_ms: Back-off between attempts on a locked file
        max_workers: Probe worker threads per scan (None: executor default)
        encoding: Text encoding used when counting lines
        report_touch: Report timestamp-only changes as "+0" modifications
        halt_on_scan_error: Stop the watcher when the directory cannot be listed
    """
    directory: Path = field(default_factory=lambda: Path("."))
    mask: str = "*"
    interval_ms: int = DEFAULT_INTERVAL_MS
    lock_wait_ms: int = DEFAULT_LOCK_WAIT_MS
    retry_interval_ms: int = DEFAULT_RETRY_INTERVAL_MS
    max_workers: Optional[int] = None
    encoding: str = "utf-8"
    report_touch: bool = True
    halt_on_scan_error: bool = False

    def __post_init__(self):
        self.directory = Path(self.directory)
        if self.interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive: {self.interval_ms}")
        if self.lock_wait_ms < 0:
            raise ValueError(f"lock_wait_ms must not be negative: {self.lock_wait_ms}")
        if self.retry_interval_ms <= 0:
            raise ValueError(f"retry_interval_ms must be positive: {self.retry_interval_ms}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {self.max_workers}")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown encoding: {self.encoding}")

    @property
    def interval(self) -> float:
        """Nominal scan interval in seconds."""
        return self.interval_ms / 1000.0

    def matches(self, path: Path) -> bool:
        """
        Check if a file name matches the configured mask.

        Args:
            path: Path to check; only its final component is matched

        Returns:
            True if the name matches
        """
        return mask_to_regex(self.mask).fullmatch(path.name) is not None
