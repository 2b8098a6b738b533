"""Data models for the linewatch package."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import time


class EventType(Enum):
    """Types of change events."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    ERROR = "error"


@dataclass(frozen=True)
class FileRecord:
    """
    Last observed state of a watched file.

    Attributes:
        path: Full path to the file
        last_modified: Modification time in nanoseconds (st_mtime_ns)
        line_count: Number of lines in the file
        deleted: True if the file vanished while it was being probed
    """
    path: Path
    last_modified: int
    line_count: int
    deleted: bool = False

    def __post_init__(self):
        if not self.deleted and self.line_count < 0:
            raise ValueError(f"line_count must be >= 0: {self.line_count}")

    @classmethod
    def deleted_marker(cls, path: Path) -> "FileRecord":
        """Sentinel returned when a file disappears between listing and reading."""
        return cls(path=path, last_modified=-1, line_count=-1, deleted=True)

    def is_newer_than(self, other: "FileRecord") -> bool:
        return self.last_modified > other.last_modified


@dataclass(frozen=True)
class ChangeEvent:
    """
    A change detected between two scans.

    Attributes:
        event_type: ADDED, MODIFIED, DELETED or ERROR
        path: Full path to the affected file
        line_count: Current line count (ADDED and MODIFIED only)
        delta: Signed line-count change (MODIFIED only)
        error: Failure description (ERROR only)
        timestamp: Unix timestamp when the event was produced
    """
    event_type: EventType
    path: Path
    line_count: Optional[int] = None
    delta: Optional[int] = None
    error: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def added(cls, record: FileRecord) -> "ChangeEvent":
        return cls(EventType.ADDED, record.path, line_count=record.line_count)

    @classmethod
    def modified(cls, record: FileRecord, previous: FileRecord) -> "ChangeEvent":
        return cls(
            EventType.MODIFIED,
            record.path,
            line_count=record.line_count,
            delta=record.line_count - previous.line_count,
        )

    @classmethod
    def deleted(cls, path: Path) -> "ChangeEvent":
        return cls(EventType.DELETED, path)

    @classmethod
    def failed(cls, path: Path, error: str) -> "ChangeEvent":
        return cls(EventType.ERROR, path, error=error)

    def format(self) -> str:
        """Render the event as a single report line."""
        if self.event_type == EventType.ADDED:
            return f"Added: [{self.path}] of {self.line_count} lines"
        if self.event_type == EventType.MODIFIED:
            sign = "+" if self.delta >= 0 else ""
            return f"Modified: [{self.path}] is now {self.line_count} lines ({sign}{self.delta})"
        if self.event_type == EventType.DELETED:
            return f"Deleted: [{self.path}]"
        return f"Error: [{self.path}] {self.error}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "path": str(self.path),
            "line_count": self.line_count,
            "delta": self.delta,
            "error": self.error,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        return self.format()
