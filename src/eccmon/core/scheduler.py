"""Fixed-period polling loop on a monotonic clock."""

from __future__ import annotations

import threading
import time
from typing import Callable

from eccmon.exceptions import SchedulerError
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


class PollingScheduler:
    """Calls a callback every ``interval_s`` seconds until stopped.

    Cycles never overlap. If a cycle overruns its period the next one
    starts as soon as it returns, and missed ticks are not replayed.
    """

    def __init__(
        self,
        interval_s: float,
        callback: Callable[[], object],
        clock: Callable[[], float] = time.monotonic,
        name: str = "ecc-poll",
        on_error: Callable[[BaseException], object] | None = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._interval_s = interval_s
        self._callback = callback
        self._clock = clock
        self._name = name
        self._on_error = on_error
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0
        self._error: BaseException | None = None

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def error(self) -> BaseException | None:
        return self._error

    def run_forever(self, max_ticks: int | None = None) -> None:
        """Run the loop in the calling thread until stop() or *max_ticks*.

        Raises:
            SchedulerError: If the callback raises; the loop ends.
        """
        logger.info("polling_started", interval_s=self._interval_s, name=self._name)
        next_fire = self._clock()
        try:
            while not self._stop.is_set():
                delay = next_fire - self._clock()
                if delay > 0 and self._stop.wait(delay):
                    break

                self._callback()
                self._ticks += 1
                if max_ticks is not None and self._ticks >= max_ticks:
                    break

                next_fire += self._interval_s
                now = self._clock()
                if next_fire < now:
                    logger.debug("polling_overrun", behind_s=round(now - next_fire, 3))
                    next_fire = now
        except Exception as exc:
            self._error = exc
            logger.error("polling_loop_error", error=str(exc), exc_info=True)
            raise SchedulerError(f"Polling loop failed: {exc}") from exc
        finally:
            logger.info("polling_stopped", ticks=self._ticks, name=self._name)

    def start(self) -> None:
        """Run the loop on a background daemon thread.

        A fatal callback error ends the thread and is handed to ``on_error``.
        """
        if self.is_running:
            return
        self._stop.clear()
        self._error = None
        self._thread = threading.Thread(target=self._run_thread, name=self._name, daemon=True)
        self._thread.start()

    def _run_thread(self) -> None:
        try:
            self.run_forever()
        except SchedulerError:
            # Already logged; the owner is told through on_error.
            if self._on_error is not None:
                self._on_error(self._error)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the loop to end and wait for the background thread."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None
