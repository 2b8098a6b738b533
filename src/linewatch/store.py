"""Thread-safe store of last observed file states."""

import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .models import ChangeEvent, FileRecord


class StateStore:
    """
    Thread-safe mapping from file path to its last observed record.

    Reconciles probe results against the stored state and produces
    change events. Every check-then-update runs under one lock, so
    probe workers may call reconcile() concurrently.
    """

    def __init__(self, report_touch: bool = True):
        """
        Initialize the store.

        Args:
            report_touch: Emit a MODIFIED event with delta 0 when only
                the timestamp moved forward
        """
        self.report_touch = report_touch
        self._records: Dict[Path, FileRecord] = {}
        self._lock = threading.RLock()

    def reconcile(self, record: FileRecord, baseline: bool = False) -> Optional[ChangeEvent]:
        """
        Merge one probe result into the store.

        Args:
            record: Result of probing a listed file
            baseline: True during the first scan; state is updated but
                no event is produced

        Returns:
            The resulting ADDED or MODIFIED event, or None
        """
        if record.deleted:
            # Deletion is detected by remove_missing(), not by the probe.
            return None

        with self._lock:
            current = self._records.get(record.path)

            if current is None:
                self._records[record.path] = record
                return None if baseline else ChangeEvent.added(record)

            if not record.is_newer_than(current):
                return None

            self._records[record.path] = record

        if baseline:
            return None
        if record.line_count == current.line_count and not self.report_touch:
            return None
        return ChangeEvent.modified(record, current)

    def remove_missing(self, present: Iterable[Path], baseline: bool = False) -> List[ChangeEvent]:
        """
        Drop every stored path that is absent from the latest listing.

        Must run after all reconcile() calls of the scan have finished.

        Args:
            present: Paths listed by the latest scan
            baseline: True during the first scan (no events)

        Returns:
            DELETED events, sorted by path
        """
        present = set(present)

        with self._lock:
            gone = [path for path in self._records if path not in present]
            for path in gone:
                del self._records[path]

        if baseline:
            return []
        return [ChangeEvent.deleted(path) for path in sorted(gone)]

    def get(self, path: Path) -> Optional[FileRecord]:
        with self._lock:
            return self._records.get(path)

    def snapshot(self) -> Dict[Path, FileRecord]:
        """Return a copy of the current state."""
        with self._lock:
            return dict(self._records)

    def clear(self) -> int:
        """
        Remove all records.

        Returns:
            Number of records removed
        """
        with self._lock:
            count = len(self._records)
            self._records.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, path: Path) -> bool:
        with self._lock:
            return path in self._records
