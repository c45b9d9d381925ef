"""Monitor settings and the log-limit configuration file."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from eccmon.core.reporting import (
    DEFAULT_OBJECT_PATH,
    DEFAULT_SUPPRESSION_WINDOW_S,
    ReportingMode,
)
from eccmon.exceptions import ConfigError
from eccmon.sysfs.io import RetryPolicy
from eccmon.sysfs.source import DEFAULT_EDAC_REPORT_PATH, DEFAULT_SYSFS_ROOT

DEFAULT_MAX_LOG_FILE = Path("/etc/ecc/maxlog.conf")
DEFAULT_POLL_INTERVAL_S = 1.0


class MonitorSettings(BaseModel):
    """Runtime configuration, resolved once at startup."""

    sysfs_root: Path = DEFAULT_SYSFS_ROOT
    edac_report_path: Path = DEFAULT_EDAC_REPORT_PATH
    max_log_file: Path = DEFAULT_MAX_LOG_FILE
    max_log_limit: int | None = Field(
        default=None, description="Overrides the value read from max_log_file",
    )
    poll_interval_s: float = Field(default=DEFAULT_POLL_INTERVAL_S, gt=0)
    reporting_mode: ReportingMode = ReportingMode.DIRECT
    suppression_window_s: float = Field(default=DEFAULT_SUPPRESSION_WINDOW_S, gt=0)
    max_retries: int | None = Field(
        default=3, description="Per-call sysfs retry budget; None retries forever",
    )
    retry_delay_s: float = Field(default=0.1, ge=0)
    object_path: str = DEFAULT_OBJECT_PATH
    event_log: Path | None = None
    reset_on_startup: bool = True

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("max_retries must be >= 0 (or unset for unbounded retry)")
        return v

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, delay_s=self.retry_delay_s)


def load_max_log_limit(path: Path | str) -> int:
    """Read the combined CE+UE log limit from a single-integer text file.

    Raises:
        ConfigError: If the file is missing, unreadable, or not an integer.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"Cannot read log limit file {path}: {exc}", path=path) from exc

    tokens = text.split()
    if not tokens:
        raise ConfigError(f"Log limit file {path} is empty", path=path)
    try:
        limit = int(tokens[0])
    except ValueError as exc:
        raise ConfigError(
            f"Log limit file {path} does not contain an integer: {tokens[0]!r}", path=path,
        ) from exc
    if limit < 0:
        raise ConfigError(f"Log limit must be non-negative, got {limit}", path=path)
    return limit
