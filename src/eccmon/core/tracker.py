"""Delta tracking for monotonic-until-reset hardware counters."""

from __future__ import annotations

from dataclasses import dataclass, field

from eccmon.models.ecc import EventKind
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Advance:
    """Outcome of feeding one observation into a CounterTracker."""

    baseline: int
    values: tuple[int, ...] = field(default_factory=tuple)
    reset: bool = False

    @property
    def increments(self) -> int:
        return len(self.values)


class CounterTracker:
    """Tracks one counter (CE or UE) against the last processed value.

    Each unit of growth is reported individually: moving from 2 to 5
    yields the values (3, 4, 5), one per event the source counted.
    """

    def __init__(self, kind: EventKind, baseline: int = 0) -> None:
        if baseline < 0:
            raise ValueError("baseline must be non-negative")
        self._kind = kind
        self._baseline = baseline

    @property
    def kind(self) -> EventKind:
        return self._kind

    @property
    def baseline(self) -> int:
        return self._baseline

    def advance(self, observed: int) -> Advance:
        """Fold a freshly read counter value into the baseline.

        Raises:
            ValueError: If *observed* is negative.
        """
        if observed < 0:
            raise ValueError(f"{self._kind.value} counter cannot be negative: {observed}")

        previous = self._baseline
        if observed > previous:
            self._baseline = observed
            return Advance(baseline=observed, values=tuple(range(previous + 1, observed + 1)))

        if observed == previous:
            return Advance(baseline=previous)

        if observed == 0:
            logger.info("ecc_counter_reset_detected", kind=self._kind.value, previous=previous)
            self._baseline = 0
            return Advance(baseline=0, reset=True)

        logger.warning(
            "ecc_counter_went_backwards",
            kind=self._kind.value,
            previous=previous,
            observed=observed,
        )
        self._baseline = observed
        return Advance(baseline=observed)

    def reset(self) -> None:
        self._baseline = 0
