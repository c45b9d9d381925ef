"""Threshold classification and event selection for ECC counter samples.

Two strategies share one ``classify`` capability:

* DirectReporting emits one event per counter increment, plus a single
  log-full event when the combined count first reaches the log limit.
* SuppressedReporting additionally opens a quiet window when the limit
  is first reached. Correctable events are held back until the window
  expires, after which counting restarts from the CE value seen at
  closure.

When CE and UE both grow in one sample, CE is evaluated first and UE
last, so UncorrectableEvent is the state published for that sample.
The limit is checked after the increments, so a log-full event always
follows the increment events of the sample that reached it.
This ordering is kept deliberately and is not a severity ranking.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Sequence

from eccmon.models.ecc import EccEvent, EccState, EventKind
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OBJECT_PATH = "/xyz/openbmc_project/memory/ecc"
DEFAULT_SUPPRESSION_WINDOW_S = 3600.0


class ReportingMode(StrEnum):
    """Selects the reporting strategy at startup."""
    DIRECT = "direct"
    SUPPRESS = "suppress"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one sample."""

    state: EccState
    logging_limit_reached: bool
    events: tuple[EccEvent, ...] = ()
    disable_report: bool = False
    cleared: bool = False


@dataclass
class SuppressionWindow:
    """Quiet period opened when the log limit is first reached."""

    baseline_at_start: int
    started_at: float
    active: bool = True

    def expired(self, now: float, duration_s: float) -> bool:
        return now - self.started_at >= duration_s


class ReportingStrategy(abc.ABC):
    """Base class for turning counter samples into a state and events."""

    def __init__(
        self,
        max_log_limit: int | None = None,
        source_id: str = DEFAULT_OBJECT_PATH,
    ) -> None:
        self._max_log_limit = max_log_limit
        self._source_id = source_id
        self._state = EccState.NORMAL
        self._limit_reached = False

    @property
    @abc.abstractmethod
    def mode(self) -> ReportingMode:
        """Which reporting mode this strategy implements."""

    @abc.abstractmethod
    def classify(
        self,
        total_ce: int,
        total_ue: int,
        ce_values: Sequence[int] = (),
        ue_values: Sequence[int] = (),
        now: float = 0.0,
    ) -> Classification:
        """Classify a sample and choose the events to emit.

        Args:
            total_ce: Current CE counter value.
            total_ue: Current UE counter value.
            ce_values: Counter values of each new CE increment, ascending.
            ue_values: Counter values of each new UE increment, ascending.
            now: Monotonic timestamp of the sample, in seconds.
        """

    @property
    def max_log_limit(self) -> int | None:
        return self._max_log_limit

    @max_log_limit.setter
    def max_log_limit(self, value: int | None) -> None:
        self._max_log_limit = value

    @property
    def state(self) -> EccState:
        return self._state

    @property
    def logging_limit_reached(self) -> bool:
        return self._limit_reached

    def limit_exceeded(self, total: int) -> bool:
        """An unset or non-positive limit never counts as reached."""
        limit = self._max_log_limit
        return limit is not None and limit > 0 and total >= limit

    def _event(self, kind: EventKind, sequence: int | None = None) -> EccEvent:
        return EccEvent.create(kind, self._source_id, sequence=sequence)

    def _clear(self) -> Classification:
        if self._state != EccState.NORMAL or self._limit_reached:
            logger.info("ecc_counters_cleared", previous_state=self._state.value)
        self._state = EccState.NORMAL
        self._limit_reached = False
        return Classification(state=self._state, logging_limit_reached=False, cleared=True)

    def _enter_log_full(self, total: int) -> tuple[EccEvent, ...]:
        logger.warning("ecc_log_limit_reached", total=total, limit=self._max_log_limit)
        self._state = EccState.LOG_FULL
        self._limit_reached = True
        return (self._event(EventKind.LOG_FULL),)

    def _increment_events(
        self,
        ce_values: Sequence[int],
        ue_values: Sequence[int],
    ) -> list[EccEvent]:
        events: list[EccEvent] = []
        if ce_values:
            events.extend(self._event(EventKind.CORRECTABLE, v) for v in ce_values)
            self._state = EccState.CORRECTABLE
        if ue_values:
            events.extend(self._event(EventKind.UNCORRECTABLE, v) for v in ue_values)
            self._state = EccState.UNCORRECTABLE
        if not events and self._state == EccState.LOG_FULL:
            self._state = EccState.NORMAL
        return events


class DirectReporting(ReportingStrategy):
    """One event per increment; a single log-full event when the limit is hit."""

    @property
    def mode(self) -> ReportingMode:
        return ReportingMode.DIRECT

    def classify(
        self,
        total_ce: int,
        total_ue: int,
        ce_values: Sequence[int] = (),
        ue_values: Sequence[int] = (),
        now: float = 0.0,
    ) -> Classification:
        total = total_ce + total_ue
        if total == 0:
            return self._clear()

        events = self._increment_events(ce_values, ue_values)
        if self.limit_exceeded(total):
            transition = not self._limit_reached
            if transition:
                events.extend(self._enter_log_full(total))
            else:
                self._state = EccState.LOG_FULL
            return Classification(
                state=self._state,
                logging_limit_reached=True,
                events=tuple(events),
                disable_report=transition,
            )

        self._limit_reached = False
        return Classification(
            state=self._state,
            logging_limit_reached=False,
            events=tuple(events),
        )


class SuppressedReporting(ReportingStrategy):
    """Rate-limits correctable events with a quiet window after log-full."""

    def __init__(
        self,
        max_log_limit: int | None = None,
        source_id: str = DEFAULT_OBJECT_PATH,
        window_s: float = DEFAULT_SUPPRESSION_WINDOW_S,
    ) -> None:
        super().__init__(max_log_limit=max_log_limit, source_id=source_id)
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        self._window_s = window_s
        self._window: SuppressionWindow | None = None
        self._ce_offset = 0

    @property
    def mode(self) -> ReportingMode:
        return ReportingMode.SUPPRESS

    @property
    def window(self) -> SuppressionWindow | None:
        return self._window

    @property
    def window_s(self) -> float:
        return self._window_s

    @property
    def ce_offset(self) -> int:
        return self._ce_offset

    @property
    def suppressed(self) -> bool:
        return self._window is not None and self._window.active

    def classify(
        self,
        total_ce: int,
        total_ue: int,
        ce_values: Sequence[int] = (),
        ue_values: Sequence[int] = (),
        now: float = 0.0,
    ) -> Classification:
        if total_ce + total_ue == 0:
            self._window = None
            self._ce_offset = 0
            return self._clear()

        if total_ce < self._ce_offset:
            self._ce_offset = total_ce

        if self.suppressed and self._window.expired(now, self._window_s):
            self._close_window(total_ce, now)

        if self.suppressed:
            events = [self._event(EventKind.UNCORRECTABLE, v) for v in ue_values]
            if ce_values:
                logger.debug("ecc_ce_events_suppressed", count=len(ce_values), ce_count=total_ce)
            return Classification(
                state=self._state,
                logging_limit_reached=True,
                events=tuple(events),
            )

        effective = (total_ce - self._ce_offset) + total_ue
        fresh_ce = [v for v in ce_values if v > self._ce_offset]
        events = self._increment_events(fresh_ce, ue_values)
        if self.limit_exceeded(effective):
            events.extend(self._enter_log_full(effective))
            self._window = SuppressionWindow(baseline_at_start=total_ce, started_at=now)
            logger.info(
                "ecc_suppression_window_opened",
                ce_count=total_ce,
                window_s=self._window_s,
            )
            return Classification(
                state=self._state,
                logging_limit_reached=True,
                events=tuple(events),
                disable_report=True,
            )

        self._limit_reached = False
        return Classification(
            state=self._state,
            logging_limit_reached=False,
            events=tuple(events),
        )

    def _close_window(self, total_ce: int, now: float) -> None:
        window = self._window
        logger.info(
            "ecc_suppression_window_closed",
            suppressed=total_ce - window.baseline_at_start,
            elapsed_s=round(now - window.started_at, 3),
        )
        window.active = False
        self._window = None
        self._ce_offset = total_ce
        self._limit_reached = False
        self._state = EccState.NORMAL


def create_strategy(
    mode: ReportingMode | str,
    max_log_limit: int | None = None,
    source_id: str = DEFAULT_OBJECT_PATH,
    window_s: float = DEFAULT_SUPPRESSION_WINDOW_S,
) -> ReportingStrategy:
    """Build the reporting strategy selected by configuration."""
    mode = ReportingMode(mode)
    if mode == ReportingMode.SUPPRESS:
        return SuppressedReporting(max_log_limit=max_log_limit, source_id=source_id, window_s=window_s)
    return DirectReporting(max_log_limit=max_log_limit, source_id=source_id)
