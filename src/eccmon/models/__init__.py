"""Pydantic models for ECC monitor state, events, and published properties."""

from eccmon.models.ecc import (
    EccEvent,
    EccProperties,
    EccState,
    EventKind,
    PollStats,
)

__all__ = [
    "EccEvent",
    "EccProperties",
    "EccState",
    "EventKind",
    "PollStats",
]
