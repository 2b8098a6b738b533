"""Self-pacing periodic tick loop."""

import logging
import threading
import time
from typing import Callable, Optional

from .exceptions import WatcherAlreadyRunningError

logger = logging.getLogger(__name__)


def next_delay(interval: float, elapsed: float) -> float:
    """
    Delay before the next tick so ticks start `interval` apart.

    Never negative: an overrunning tick is followed immediately.
    """
    return max(0.0, interval - elapsed)


class Scheduler:
    """
    Runs a tick function repeatedly on a background thread.

    The first tick fires immediately. After each tick the loop waits
    `interval` minus the tick's duration, so the cadence does not drift
    and ticks never overlap. Only one loop runs per scheduler; a loop
    that is still finishing its last tick after stop() counts as running.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        interval: float,
        name: str = "linewatch-scheduler",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the scheduler.

        Args:
            tick: Function run once per tick
            interval: Nominal interval between tick starts, in seconds
            name: Name of the loop thread
            clock: Monotonic clock in seconds
        """
        self.interval = interval
        self.name = name
        self.tick_count = 0
        self.last_duration: Optional[float] = None

        self._tick = tick
        self._clock = clock
        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """
        Start the tick loop in the background.

        Raises:
            WatcherAlreadyRunningError: If a loop is already running
        """
        with self._lock:
            if self._running:
                raise WatcherAlreadyRunningError("The process is already running.")

            self._running = True
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Cancel future ticks and wait for the loop to exit.

        A tick in progress is allowed to finish.

        Args:
            timeout: Maximum seconds to wait for the loop thread

        Returns:
            True if a running loop was signalled, False if idle
        """
        with self._lock:
            if not self._running:
                return False
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        return True

    def request_stop(self) -> None:
        """Signal the loop to exit after the current tick, without waiting."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def _run(self) -> None:
        logger.debug(f"Scheduler loop started, interval={self.interval}s")
        try:
            while not self._stop_event.is_set():
                started = self._clock()
                try:
                    self._tick()
                except Exception:
                    logger.exception("Tick failed")
                self.tick_count += 1

                elapsed = self._clock() - started
                self.last_duration = elapsed
                delay = next_delay(self.interval, elapsed)
                logger.debug(f"Tick {self.tick_count} took {elapsed:.3f}s, next in {delay:.3f}s")

                if self._stop_event.wait(timeout=delay):
                    break
        finally:
            with self._lock:
                self._running = False
                self._thread = None
            logger.debug("Scheduler loop stopped")
