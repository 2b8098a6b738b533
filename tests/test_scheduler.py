"""Tests for scheduler module."""

import pytest
import threading
import time

from src.linewatch.exceptions import WatcherAlreadyRunningError
from src.linewatch.scheduler import Scheduler, next_delay


class ManualClock:
    """Clock that only moves when a tick says so."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TickRecorder:
    """Tick function that counts calls and signals each one."""

    def __init__(self, clock=None, duration=0.0, fail=False):
        self.calls = 0
        self.clock = clock
        self.duration = duration
        self.fail = fail
        self._events = [threading.Event() for _ in range(10)]

    def __call__(self):
        self.calls += 1
        if self.clock is not None:
            self.clock.now += self.duration
        if self.calls <= len(self._events):
            self._events[self.calls - 1].set()
        if self.fail:
            raise RuntimeError("tick failed")

    def wait_for(self, n, timeout=5.0):
        return self._events[n - 1].wait(timeout=timeout)


class TestNextDelay:
    """Tests for next_delay function."""

    def test_short_tick(self):
        assert next_delay(10.0, 2.5) == 7.5

    def test_no_elapsed(self):
        assert next_delay(10.0, 0.0) == 10.0

    def test_exact_interval(self):
        assert next_delay(10.0, 10.0) == 0.0

    def test_overrun_never_negative(self):
        assert next_delay(10.0, 25.0) == 0.0


class TestScheduler:
    """Tests for Scheduler class."""

    def test_create_scheduler(self):
        scheduler = Scheduler(lambda: None, 10.0)
        assert scheduler.is_running is False
        assert scheduler.tick_count == 0

    def test_first_tick_immediate(self):
        tick = TickRecorder()
        scheduler = Scheduler(tick, 60.0)

        scheduler.start()
        try:
            assert tick.wait_for(1)
            assert scheduler.is_running is True
        finally:
            scheduler.stop()

        assert scheduler.is_running is False

    def test_start_twice_raises(self):
        tick = TickRecorder()
        scheduler = Scheduler(tick, 60.0)
        scheduler.start()
        try:
            with pytest.raises(WatcherAlreadyRunningError):
                scheduler.start()
            assert tick.wait_for(1)
            time.sleep(0.1)
            assert tick.calls == 1
        finally:
            scheduler.stop()

    def test_concurrent_start_single_winner(self):
        tick = TickRecorder()
        scheduler = Scheduler(tick, 60.0)
        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def starter():
            barrier.wait()
            try:
                scheduler.start()
                outcome = "started"
            except WatcherAlreadyRunningError:
                outcome = "rejected"
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=starter) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        try:
            assert results.count("started") == 1
            assert results.count("rejected") == 7
            assert tick.wait_for(1)
            time.sleep(0.1)
            assert tick.calls == 1
        finally:
            scheduler.stop()

    def test_stop_when_idle(self):
        scheduler = Scheduler(lambda: None, 10.0)
        assert scheduler.stop() is False

    def test_stop_cancels_pending_tick(self):
        clock = ManualClock()
        tick = TickRecorder(clock=clock, duration=1.0)
        scheduler = Scheduler(tick, 10.0, clock=clock)

        scheduler.start()
        assert tick.wait_for(1)
        assert not tick.wait_for(2, timeout=0.3)

        started = time.monotonic()
        assert scheduler.stop(timeout=5) is True
        assert time.monotonic() - started < 2.0
        assert tick.calls == 1
        assert scheduler.last_duration == 1.0

    def test_overrun_fires_next_tick_immediately(self):
        clock = ManualClock()
        tick = TickRecorder(clock=clock, duration=25.0)
        scheduler = Scheduler(tick, 10.0, clock=clock)

        scheduler.start()
        try:
            assert tick.wait_for(1)
            assert tick.wait_for(2, timeout=2.0)
            assert tick.wait_for(3, timeout=2.0)
        finally:
            scheduler.stop()

    def test_ticks_never_overlap(self):
        active = []
        overlaps = []
        done = threading.Event()

        def tick():
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.02)
            active.pop()
            if scheduler.tick_count >= 4:
                done.set()

        scheduler = Scheduler(tick, 0.001)
        scheduler.start()
        try:
            assert done.wait(timeout=5)
        finally:
            scheduler.stop()

        assert overlaps == []

    def test_failing_tick_keeps_loop_alive(self):
        clock = ManualClock()
        tick = TickRecorder(clock=clock, duration=30.0, fail=True)
        scheduler = Scheduler(tick, 10.0, clock=clock)

        scheduler.start()
        try:
            assert tick.wait_for(2, timeout=2.0)
            assert scheduler.is_running is True
        finally:
            scheduler.stop()

    def test_request_stop_from_tick(self):
        holder = {}

        def tick():
            holder["scheduler"].request_stop()

        scheduler = Scheduler(tick, 0.01)
        holder["scheduler"] = scheduler
        scheduler.start()

        deadline = time.monotonic() + 5
        while scheduler.is_running and time.monotonic() < deadline:
            time.sleep(0.01)

        assert scheduler.is_running is False
        assert scheduler.tick_count == 1

    def test_stop_from_tick_does_not_deadlock(self):
        holder = {}

        def tick():
            holder["stopped"] = holder["scheduler"].stop()

        scheduler = Scheduler(tick, 0.01)
        holder["scheduler"] = scheduler
        scheduler.start()

        deadline = time.monotonic() + 5
        while scheduler.is_running and time.monotonic() < deadline:
            time.sleep(0.01)

        assert holder["stopped"] is True
        assert scheduler.is_running is False

    def test_restart_after_stop(self):
        tick = TickRecorder()
        scheduler = Scheduler(tick, 60.0)

        scheduler.start()
        assert tick.wait_for(1)
        scheduler.stop()

        scheduler.start()
        try:
            assert tick.wait_for(2)
        finally:
            scheduler.stop()
