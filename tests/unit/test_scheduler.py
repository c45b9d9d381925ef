"""Unit tests for eccmon.core.scheduler — fixed-period polling."""

from __future__ import annotations

import threading

import pytest

from eccmon.core.scheduler import PollingScheduler
from eccmon.exceptions import SchedulerError


class FakeTime:
    """Clock plus a stand-in for Event.wait that advances it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.waits: list[float] = []

    def clock(self) -> float:
        return self.now

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        self.now += timeout
        return False


def _scheduler(fake: FakeTime, interval_s: float, callback) -> PollingScheduler:
    scheduler = PollingScheduler(interval_s, callback, clock=fake.clock)
    scheduler._stop.wait = fake.wait
    return scheduler


class TestRunForever:
    def test_first_tick_is_immediate(self):
        fake = FakeTime()
        calls: list[float] = []
        scheduler = _scheduler(fake, 1.0, lambda: calls.append(fake.now))

        scheduler.run_forever(max_ticks=1)

        assert calls == [0.0]
        assert fake.waits == []

    def test_fixed_period_accounts_for_cycle_time(self):
        fake = FakeTime()
        calls: list[float] = []

        def cycle():
            calls.append(fake.now)
            fake.now += 0.2

        scheduler = _scheduler(fake, 1.0, cycle)
        scheduler.run_forever(max_ticks=3)

        assert calls == pytest.approx([0.0, 1.0, 2.0])
        assert fake.waits == pytest.approx([0.8, 0.8])
        assert scheduler.ticks == 3

    def test_overrun_does_not_build_backlog(self):
        fake = FakeTime()
        calls: list[float] = []

        def slow_cycle():
            calls.append(fake.now)
            fake.now += 2.5

        scheduler = _scheduler(fake, 1.0, slow_cycle)
        scheduler.run_forever(max_ticks=3)

        # Each overrun cycle is followed directly by the next, no catch-up burst
        assert calls == pytest.approx([0.0, 2.5, 5.0])
        assert fake.waits == []

    def test_callback_error_stops_loop(self):
        fake = FakeTime()

        def broken():
            raise RuntimeError("boom")

        scheduler = _scheduler(fake, 1.0, broken)
        with pytest.raises(SchedulerError, match="boom"):
            scheduler.run_forever(max_ticks=5)

        assert isinstance(scheduler.error, RuntimeError)
        assert scheduler.ticks == 0

    def test_stop_before_run(self):
        fake = FakeTime()
        calls = []
        scheduler = _scheduler(fake, 1.0, lambda: calls.append(1))

        scheduler.stop()
        scheduler.run_forever()

        assert calls == []

    def test_stop_from_callback(self):
        fake = FakeTime()
        scheduler = _scheduler(fake, 1.0, lambda: None)
        scheduler._callback = lambda: scheduler.stop() if fake.now >= 2.0 else None

        scheduler.run_forever()

        assert scheduler.ticks == 3

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            PollingScheduler(0, lambda: None)


class TestBackgroundThread:
    def test_start_and_stop(self):
        ticked = threading.Event()
        scheduler = PollingScheduler(0.01, ticked.set)

        scheduler.start()
        try:
            assert ticked.wait(2.0)
            assert scheduler.is_running is True
        finally:
            scheduler.stop()

        assert scheduler.is_running is False
        assert scheduler.ticks >= 1

    def test_thread_error_is_kept(self):
        def broken():
            raise OSError("sysfs gone")

        scheduler = PollingScheduler(0.01, broken)
        scheduler.start()
        thread = scheduler._thread
        thread.join(2.0)

        assert not thread.is_alive()
        assert isinstance(scheduler.error, OSError)
        scheduler.stop()

    def test_thread_error_reaches_on_error(self):
        seen: list[BaseException] = []
        reported = threading.Event()

        def broken():
            raise RuntimeError("timer died")

        def on_error(exc: BaseException) -> None:
            seen.append(exc)
            reported.set()

        scheduler = PollingScheduler(0.01, broken, on_error=on_error)
        scheduler.start()

        assert reported.wait(2.0)
        assert isinstance(seen[0], RuntimeError)
        assert seen[0] is scheduler.error
        scheduler.stop()
