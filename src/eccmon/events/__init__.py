"""Event sinks that record discrete ECC incidents."""

from eccmon.events.base import EventSink
from eccmon.events.sinks import JsonlEventSink, LogEventSink, MultiSink

__all__ = [
    "EventSink",
    "JsonlEventSink",
    "LogEventSink",
    "MultiSink",
]
