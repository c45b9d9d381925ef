"""One read/classify/report cycle for the ECC counters.

EccMonitor owns the process-lifetime state (trackers plus the reporting
strategy) and binds the pure classification to its collaborators: the
counter source, the property publisher, and the event sink. It is only
ever driven from a single polling thread.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from eccmon.config import MonitorSettings, load_max_log_limit
from eccmon.core.reporting import (
    Classification,
    ReportingStrategy,
    SuppressedReporting,
    create_strategy,
)
from eccmon.core.tracker import Advance, CounterTracker
from eccmon.events.base import EventSink
from eccmon.events.sinks import JsonlEventSink, LogEventSink, MultiSink
from eccmon.exceptions import ConfigError, FetchFailedError, SysfsError
from eccmon.models.ecc import EccEvent, EccProperties, EccState, EventKind
from eccmon.publish import PropertyPublisher
from eccmon.sysfs.source import CounterSource
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Everything one polling cycle observed and decided."""

    ce: Advance
    ue: Advance
    classification: Classification
    properties: EccProperties
    delivered: int = 0
    dropped: int = 0

    @property
    def events(self) -> tuple[EccEvent, ...]:
        return self.classification.events


@dataclass(frozen=True)
class MonitorState:
    """Point-in-time view of the monitor's process-lifetime state."""

    previous_ce_count: int
    previous_ue_count: int
    max_log_limit: int | None
    logging_limit_reached: bool
    reported_state: EccState
    suppression_active: bool = False
    suppression_started_at: float | None = None
    suppression_baseline: int | None = None
    ce_offset: int = 0


class EccMonitor:
    """Samples CE/UE counters and publishes the resulting ECC state."""

    def __init__(
        self,
        source: CounterSource,
        strategy: ReportingStrategy,
        publisher: PropertyPublisher | None = None,
        sink: EventSink | None = None,
        settings: MonitorSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._strategy = strategy
        self._publisher = publisher or PropertyPublisher()
        self._sink = sink or LogEventSink()
        self._settings = settings or MonitorSettings()
        self._clock = clock
        self._ce = CounterTracker(EventKind.CORRECTABLE)
        self._ue = CounterTracker(EventKind.UNCORRECTABLE)

    @property
    def source(self) -> CounterSource:
        return self._source

    @property
    def strategy(self) -> ReportingStrategy:
        return self._strategy

    @property
    def publisher(self) -> PropertyPublisher:
        return self._publisher

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def settings(self) -> MonitorSettings:
        return self._settings

    @property
    def previous_ce_count(self) -> int:
        return self._ce.baseline

    @property
    def previous_ue_count(self) -> int:
        return self._ue.baseline

    @property
    def state(self) -> MonitorState:
        """Snapshot of the trackers and the reporting strategy."""
        strategy = self._strategy
        window = None
        ce_offset = 0
        if isinstance(strategy, SuppressedReporting):
            window = strategy.window if strategy.suppressed else None
            ce_offset = strategy.ce_offset
        return MonitorState(
            previous_ce_count=self._ce.baseline,
            previous_ue_count=self._ue.baseline,
            max_log_limit=strategy.max_log_limit,
            logging_limit_reached=strategy.logging_limit_reached,
            reported_state=strategy.state,
            suppression_active=window is not None,
            suppression_started_at=window.started_at if window else None,
            suppression_baseline=window.baseline_at_start if window else None,
            ce_offset=ce_offset,
        )

    def startup(self) -> None:
        """Reset the hardware counters and load the log limit, best effort.

        A missing sysfs root skips both steps. Neither failure is fatal.
        """
        if self._settings.max_log_limit is not None:
            self._strategy.max_log_limit = self._settings.max_log_limit
            logger.info("ecc_limit_configured", limit=self._settings.max_log_limit)

        if not self._source.exists():
            logger.warning("sysfs_root_missing", root=str(self._source.root))
            return

        if self._settings.reset_on_startup:
            try:
                self._source.reset_counters()
            except SysfsError as exc:
                logger.warning("ecc_counter_reset_failed", path=exc.path, error=str(exc))

        if self._settings.max_log_limit is None:
            try:
                limit = load_max_log_limit(self._settings.max_log_file)
            except ConfigError as exc:
                logger.warning(
                    "ecc_limit_load_failed",
                    path=exc.path,
                    error=str(exc),
                    limit=self._strategy.max_log_limit,
                )
            else:
                self._strategy.max_log_limit = limit
                logger.info("ecc_limit_loaded", limit=limit, path=str(self._settings.max_log_file))

    def run_cycle(self) -> CycleResult | None:
        """Run one read/classify/report cycle.

        Returns:
            The cycle's result, or None if the counters could not be read.
        """
        try:
            ce_raw = self._source.read_ce()
            ue_raw = self._source.read_ue()
        except FetchFailedError as exc:
            logger.warning("ecc_poll_failed", path=exc.path, error=str(exc))
            self._publisher.record_failure(str(exc))
            return None

        ce = self._ce.advance(ce_raw)
        ue = self._ue.advance(ue_raw)

        result = self._strategy.classify(
            ce.baseline,
            ue.baseline,
            ce_values=ce.values,
            ue_values=ue.values,
            now=self._clock(),
        )
        if result.cleared:
            self._ce.reset()
            self._ue.reset()

        props = self._publisher.update(
            ce_count=self._ce.baseline,
            ue_count=self._ue.baseline,
            is_logging_limit_reached=result.logging_limit_reached,
            state=result.state,
        )

        delivered, dropped = self._deliver(result.events)

        if result.disable_report:
            self._disable_report()

        self._publisher.record_cycle(events_emitted=delivered, events_dropped=dropped)
        return CycleResult(
            ce=ce,
            ue=ue,
            classification=result,
            properties=props,
            delivered=delivered,
            dropped=dropped,
        )

    def _deliver(self, events: tuple[EccEvent, ...]) -> tuple[int, int]:
        delivered = 0
        dropped = 0
        for event in events:
            try:
                self._sink.add(event)
                delivered += 1
            except Exception as exc:
                dropped += 1
                logger.error(
                    "ecc_event_delivery_failed",
                    sink=self._sink.sink_name,
                    kind=event.kind.value,
                    sequence=event.sequence,
                    error=str(exc),
                )
        return delivered, dropped

    def _disable_report(self) -> None:
        try:
            self._source.set_report_enabled(False)
        except SysfsError as exc:
            logger.error("edac_report_disable_failed", path=exc.path, error=str(exc))


def build_monitor(
    settings: MonitorSettings,
    publisher: PropertyPublisher | None = None,
) -> EccMonitor:
    """Wire an EccMonitor from resolved settings."""
    source = CounterSource(
        root=settings.sysfs_root,
        edac_report_path=settings.edac_report_path,
        policy=settings.retry_policy,
    )
    strategy = create_strategy(
        settings.reporting_mode,
        max_log_limit=settings.max_log_limit,
        source_id=settings.object_path,
        window_s=settings.suppression_window_s,
    )
    sinks: list[EventSink] = [LogEventSink()]
    if settings.event_log is not None:
        sinks.append(JsonlEventSink(settings.event_log))
    sink = sinks[0] if len(sinks) == 1 else MultiSink(sinks)

    logger.info(
        "ecc_monitor_configured",
        root=str(settings.sysfs_root),
        mode=strategy.mode.value,
        interval_s=settings.poll_interval_s,
        sink=sink.sink_name,
        bounded_retry=settings.retry_policy.is_bounded,
    )
    return EccMonitor(source, strategy, publisher=publisher, sink=sink, settings=settings)
