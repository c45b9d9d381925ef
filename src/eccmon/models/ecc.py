"""ECC state, event record, and property models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

# SEL generator ID for records originated by the BMC itself.
SEL_BMC_GEN_ID = 0x0020

CE_EVENT_DATA = (0x00, 0xFF, 0xFE)
UE_EVENT_DATA = (0x01, 0xFF, 0xFE)
LOG_FULL_EVENT_DATA = (0x05, 0xFF, 0xFE)

CE_MESSAGE = "ECC error(correctable)"
UE_MESSAGE = "ECC error(uncorrectable)"
LOG_FULL_MESSAGE = "ECC error(memory error logging limit reached)"


class EccState(StrEnum):
    """Aggregate ECC classification published after each cycle."""
    NORMAL = "Normal"
    CORRECTABLE = "CorrectableEvent"
    UNCORRECTABLE = "UncorrectableEvent"
    LOG_FULL = "LogFull"


class EventKind(StrEnum):
    """Kind of discrete incident delivered to an event sink."""
    CORRECTABLE = "correctable"
    UNCORRECTABLE = "uncorrectable"
    LOG_FULL = "log_full"


_EVENT_TEMPLATES: dict[EventKind, tuple[str, tuple[int, int, int]]] = {
    EventKind.CORRECTABLE: (CE_MESSAGE, CE_EVENT_DATA),
    EventKind.UNCORRECTABLE: (UE_MESSAGE, UE_EVENT_DATA),
    EventKind.LOG_FULL: (LOG_FULL_MESSAGE, LOG_FULL_EVENT_DATA),
}


class EccEvent(BaseModel):
    """A single incident record (message, source object, 3-byte payload)."""
    model_config = {"frozen": True}

    kind: EventKind
    message: str
    path: str
    sel_data: list[int] = Field(min_length=3, max_length=3)
    assertion: bool = True
    generator_id: int = SEL_BMC_GEN_ID
    sequence: int | None = Field(
        default=None, description="Cumulative counter value for CE/UE events",
    )

    @classmethod
    def create(cls, kind: EventKind, path: str, sequence: int | None = None) -> EccEvent:
        message, data = _EVENT_TEMPLATES[kind]
        return cls(
            kind=kind,
            message=message,
            path=path,
            sel_data=list(data),
            sequence=sequence,
        )


class EccProperties(BaseModel):
    """The four attributes exposed by the property endpoint."""
    model_config = {"frozen": True, "populate_by_name": True}

    ce_count: int = Field(default=0, ge=0, alias="ceCount")
    ue_count: int = Field(default=0, ge=0, alias="ueCount")
    is_logging_limit_reached: bool = Field(default=False, alias="isLoggingLimitReached")
    state: EccState = EccState.NORMAL


class PollStats(BaseModel):
    """Polling loop health counters."""
    model_config = {"frozen": False}

    cycles: int = 0
    failed_cycles: int = 0
    events_emitted: int = 0
    events_dropped: int = 0
    last_error: str | None = None
