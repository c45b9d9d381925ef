"""Thread-safe holder for the published ECC properties.

The polling thread writes, the HTTP endpoint and CLI read.
"""

from __future__ import annotations

import threading

from eccmon.models.ecc import EccProperties, EccState, PollStats


class PropertyPublisher:
    """Holds the latest ceCount/ueCount/isLoggingLimitReached/state snapshot."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._properties = EccProperties()
        self._stats = PollStats()

    def update(
        self,
        ce_count: int,
        ue_count: int,
        is_logging_limit_reached: bool,
        state: EccState,
    ) -> EccProperties:
        props = EccProperties(
            ce_count=ce_count,
            ue_count=ue_count,
            is_logging_limit_reached=is_logging_limit_reached,
            state=state,
        )
        with self._lock:
            self._properties = props
        return props

    def snapshot(self) -> EccProperties:
        with self._lock:
            return self._properties

    def record_cycle(self, events_emitted: int = 0, events_dropped: int = 0) -> None:
        with self._lock:
            self._stats.cycles += 1
            self._stats.events_emitted += events_emitted
            self._stats.events_dropped += events_dropped

    def record_failure(self, error: str) -> None:
        with self._lock:
            self._stats.failed_cycles += 1
            self._stats.last_error = error

    def stats(self) -> PollStats:
        with self._lock:
            return self._stats.model_copy()
