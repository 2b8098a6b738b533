"""Directory watcher: scan, probe and reconcile on a fixed cadence."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Set

from .config import WatcherConfig
from .exceptions import ProbeError, ScanError
from .models import ChangeEvent, EventType
from .probe import FileProbe
from .scanner import Scanner
from .scheduler import Scheduler
from .store import StateStore

logger = logging.getLogger(__name__)


class DirectoryWatcher:
    """
    Polls one directory and reports line-count changes of matching files.

    Each watcher owns its state store and scheduler, so several watchers
    can run side by side in one process. The first completed scan only
    records a baseline; later scans report ADDED, MODIFIED and DELETED
    events, plus ERROR events for files that could not be probed.
    """

    def __init__(
        self,
        config: WatcherConfig,
        reporter: Optional[Callable[[ChangeEvent], None]] = None,
        probe: Optional[FileProbe] = None,
        scanner: Optional[Scanner] = None,
    ):
        """
        Initialize the watcher.

        Args:
            config: Watcher configuration
            reporter: Callback receiving every emitted event
            probe: File probe (default: built from config)
            scanner: Directory scanner (default: built from config)
        """
        self.config = config
        self.last_error: Optional[ScanError] = None

        self._reporter = reporter
        self._probe = probe or FileProbe.from_config(config)
        self._scanner = scanner or Scanner(config)
        self._store = StateStore(report_touch=config.report_touch)
        self._scheduler = Scheduler(self._tick, config.interval)
        self._baseline_taken = False
        self._baseline_missed: Set[Path] = set()
        self._missed_lock = threading.Lock()
        self._scan_lock = threading.Lock()

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._scheduler.is_running

    @property
    def baseline_taken(self) -> bool:
        return self._baseline_taken

    def start(self) -> None:
        """
        Start polling in the background. The first scan runs immediately.

        State from a previous run is discarded, so the first scan of every
        run is a fresh baseline.

        Raises:
            WatcherAlreadyRunningError: If this watcher is already running
        """
        with self._scan_lock:
            self._scheduler.start()
            self._baseline_taken = False
            self._store.clear()
            with self._missed_lock:
                self._baseline_missed.clear()
        logger.info(
            f"Watching {self._scanner.directory} for '{self.config.mask}' "
            f"every {self.config.interval_ms} ms"
        )

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop polling. A scan in progress is allowed to finish.

        Returns:
            True if the watcher was running
        """
        stopped = self._scheduler.stop(timeout=timeout)
        if stopped:
            logger.info(f"Stopped watching {self._scanner.directory}")
        return stopped

    def scan_once(self) -> List[ChangeEvent]:
        """
        Run one complete scan and reconcile pass.

        Returns:
            Events produced by this scan, in the order they were reported

        Raises:
            ScanError: If the directory could not be listed
        """
        with self._scan_lock:
            baseline = not self._baseline_taken
            paths = self._scanner.scan()

            events: List[ChangeEvent] = []
            if paths:
                with ThreadPoolExecutor(
                    max_workers=self.config.max_workers,
                    thread_name_prefix="linewatch-probe",
                ) as pool:
                    futures = [pool.submit(self._check_file, path, baseline) for path in paths]
                    for future in as_completed(futures):
                        event = future.result()
                        if event is not None:
                            events.append(event)

            events.extend(self._store.remove_missing(paths, baseline=baseline))
            with self._missed_lock:
                self._baseline_missed &= paths
            self._baseline_taken = True

        if baseline:
            logger.info(f"Baseline taken: {len(self._store)} file(s)")
        for event in events:
            self._emit(event)
        return events

    def _check_file(self, path: Path, baseline: bool) -> Optional[ChangeEvent]:
        """
        Probe one file and merge the result. Runs on a pool thread.

        A file that could not be probed during the baseline joins the
        baseline silently on its first successful probe.
        """
        try:
            record = self._probe.probe(path)
        except Exception as e:
            if isinstance(e, ProbeError):
                logger.warning(f"Skipping file for this scan: {e}")
                message = str(e)
            else:
                logger.exception(f"Unexpected error probing {path}")
                message = f"{type(e).__name__}: {e}"
            if baseline:
                with self._missed_lock:
                    self._baseline_missed.add(path)
            return ChangeEvent.failed(path, message)

        if not record.deleted:
            with self._missed_lock:
                if path in self._baseline_missed:
                    self._baseline_missed.discard(path)
                    baseline = True
        return self._store.reconcile(record, baseline=baseline)

    def _emit(self, event: ChangeEvent) -> None:
        if event.event_type != EventType.ERROR:
            logger.debug(event.format())
        if self._reporter is None:
            return
        try:
            self._reporter(event)
        except Exception as e:
            logger.error(f"Reporter failed for {event.path}: {e}")

    def _tick(self) -> None:
        """Scheduled scan. Directory failures are logged, not raised."""
        try:
            self.scan_once()
            self.last_error = None
        except ScanError as e:
            self.last_error = e
            logger.error(f"Scan failed: {e}")
            if self.config.halt_on_scan_error:
                logger.error("Halting watcher after scan failure")
                self._scheduler.request_stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
