"""Retrying reads and writes of single scalar values from sysfs-style files.

sysfs nodes can race with driver state, so an open or read may fail
transiently. Every call gets its own retry budget from a RetryPolicy;
when the budget runs out the call raises a typed failure instead of
spinning. ``RetryPolicy(max_retries=None)`` keeps retrying forever.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from eccmon.exceptions import FetchFailedError, WriteFailedError
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Per-call retry budget for sysfs access."""

    max_retries: int | None = 3
    delay_s: float = 0.1

    def __post_init__(self) -> None:
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries must be >= 0 or None")
        if self.delay_s < 0:
            raise ValueError("delay_s must be >= 0")

    @property
    def is_bounded(self) -> bool:
        return self.max_retries is not None

    def allows(self, retries_done: int) -> bool:
        """Return True if another retry is allowed after *retries_done* retries."""
        return self.max_retries is None or retries_done < self.max_retries


DEFAULT_POLICY = RetryPolicy()


def _read_token(path: Path) -> str:
    with open(path, "r") as f:
        tokens = f.read().split()
    if not tokens:
        raise ValueError(f"{path} is empty")
    return tokens[0]


def read_value(path: Path | str, policy: RetryPolicy = DEFAULT_POLICY) -> str:
    """Read the first whitespace-delimited token of *path*.

    Raises:
        FetchFailedError: If the read keeps failing past the retry budget.
    """
    return _retry_read(Path(path), _read_token, policy)


def read_int(
    path: Path | str,
    policy: RetryPolicy = DEFAULT_POLICY,
    non_negative: bool = False,
) -> int:
    """Read *path* and parse its content as an integer.

    Non-numeric content, or a negative value when *non_negative* is set, is
    treated like an I/O failure and retried.

    Raises:
        FetchFailedError: If no valid integer is read within the retry budget.
    """
    def _parse(p: Path) -> int:
        value = int(_read_token(p))
        if non_negative and value < 0:
            raise ValueError(f"{p} reported a negative value: {value}")
        return value

    return _retry_read(Path(path), _parse, policy)


def _retry_read(path: Path, reader, policy: RetryPolicy):
    retries = 0
    while True:
        try:
            return reader(path)
        except (OSError, ValueError) as exc:
            if not policy.allows(retries):
                logger.warning(
                    "sysfs_read_failed", path=str(path), retries=retries, error=str(exc),
                )
                raise FetchFailedError(
                    f"Failed to read {path} after {retries} retries: {exc}", path=path,
                ) from exc
            retries += 1
            logger.debug("sysfs_read_retry", path=str(path), attempt=retries, error=str(exc))
            time.sleep(policy.delay_s)


def write_value(path: Path | str, value: str, policy: RetryPolicy = DEFAULT_POLICY) -> None:
    """Write *value* to *path* and flush before returning.

    Raises:
        WriteFailedError: If the write keeps failing past the retry budget.
    """
    path = Path(path)
    retries = 0
    while True:
        try:
            with open(path, "w") as f:
                f.write(value)
                f.flush()
            return
        except OSError as exc:
            if not policy.allows(retries):
                logger.warning(
                    "sysfs_write_failed", path=str(path), retries=retries, error=str(exc),
                )
                raise WriteFailedError(
                    f"Failed to write {path} after {retries} retries: {exc}", path=path,
                ) from exc
            retries += 1
            logger.debug("sysfs_write_retry", path=str(path), attempt=retries, error=str(exc))
            time.sleep(policy.delay_s)
