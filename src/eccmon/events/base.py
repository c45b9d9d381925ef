"""Abstract interface for incident sinks."""

from __future__ import annotations

import abc

from eccmon.models.ecc import EccEvent


class EventSink(abc.ABC):
    """Destination for ECC incident records (SEL, audit log, ...)."""

    @abc.abstractmethod
    def add(self, event: EccEvent) -> None:
        """Deliver one incident record.

        Implementations raise on delivery failure; callers log and move on.
        """

    def close(self) -> None:
        """Release any resources held by the sink."""

    @property
    @abc.abstractmethod
    def sink_name(self) -> str:
        """Human-readable name of this sink."""
