"""Core ECC tracking: counter deltas, classification, and polling."""

from eccmon.core.reporting import (
    DirectReporting,
    ReportingMode,
    ReportingStrategy,
    SuppressedReporting,
    create_strategy,
)
from eccmon.core.scheduler import PollingScheduler
from eccmon.core.tracker import CounterTracker

__all__ = [
    "CounterTracker",
    "DirectReporting",
    "PollingScheduler",
    "ReportingMode",
    "ReportingStrategy",
    "SuppressedReporting",
    "create_strategy",
]
