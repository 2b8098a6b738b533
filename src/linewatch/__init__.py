"""
Linewatch Package

Polls a directory for text files matching a mask and reports, on a
fixed cadence, which files were added, modified or deleted.

Features:
- Single-level directory scan filtered by `*`/`?` masks
- Line counting with bounded retry on locked files
- Baseline first scan, then ADDED / MODIFIED / DELETED events
- Self-pacing scheduler that never overlaps scans
- Bounded worker pool for per-file probing
"""

from .models import (
    EventType,
    FileRecord,
    ChangeEvent,
)

from .config import WatcherConfig, validate_mask

from .exceptions import (
    WatcherError,
    WatcherAlreadyRunningError,
    ScanError,
    ProbeError,
    LockTimeoutError,
)

from .probe import FileProbe, count_lines
from .scanner import Scanner
from .store import StateStore
from .scheduler import Scheduler, next_delay
from .reporter import ConsoleReporter
from .watcher import DirectoryWatcher


__all__ = [
    # Models
    "EventType",
    "FileRecord",
    "ChangeEvent",
    # Config
    "WatcherConfig",
    "validate_mask",
    # Exceptions
    "WatcherError",
    "WatcherAlreadyRunningError",
    "ScanError",
    "ProbeError",
    "LockTimeoutError",
    # Components
    "FileProbe",
    "count_lines",
    "Scanner",
    "StateStore",
    "Scheduler",
    "next_delay",
    "ConsoleReporter",
    # Main watcher
    "DirectoryWatcher",
]

__version__ = "0.1.0"
