"""Concrete event sinks."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path

from eccmon.events.base import EventSink
from eccmon.models.ecc import EccEvent
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


class LogEventSink(EventSink):
    """Writes each incident as a structured log line."""

    @property
    def sink_name(self) -> str:
        return "log"

    def add(self, event: EccEvent) -> None:
        logger.info(
            "ecc_event",
            kind=event.kind.value,
            message=event.message,
            path=event.path,
            sel_data=" ".join(f"{b:02x}" for b in event.sel_data),
            assertion=event.assertion,
            generator_id=f"0x{event.generator_id:04X}",
            sequence=event.sequence,
        )


class JsonlEventSink(EventSink):
    """Appends incidents to a JSON-lines audit file, one record per line."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return f"jsonl:{self._path}"

    @property
    def path(self) -> Path:
        return self._path

    def add(self, event: EccEvent) -> None:
        record = event.model_dump(mode="json")
        record["timestamp"] = datetime.now(timezone.utc).isoformat()
        line = json.dumps(record, sort_keys=True)
        with self._lock:
            with open(self._path, "a") as f:
                f.write(line + "\n")


class MultiSink(EventSink):
    """Fans out to several sinks; a failing sink does not block the others.

    Raises the first failure after every sink has been tried.
    """

    def __init__(self, sinks: list[EventSink]) -> None:
        self._sinks = list(sinks)

    @property
    def sink_name(self) -> str:
        return "+".join(s.sink_name for s in self._sinks) or "none"

    @property
    def sinks(self) -> list[EventSink]:
        return list(self._sinks)

    def add(self, event: EccEvent) -> None:
        first_error: Exception | None = None
        for sink in self._sinks:
            try:
                sink.add(event)
            except Exception as exc:
                logger.warning("event_sink_failed", sink=sink.sink_name, error=str(exc))
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        for sink in self._sinks:
            try:
                sink.close()
            except Exception:
                logger.warning("event_sink_close_error", sink=sink.sink_name)
