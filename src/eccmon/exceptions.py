"""Exception hierarchy for the ECC monitor."""

from __future__ import annotations

from pathlib import Path


class EccMonError(Exception):
    """Base exception for all eccmon errors."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = str(path) if path is not None else None
        super().__init__(message)


class SysfsError(EccMonError):
    """Error accessing a file-backed counter endpoint."""


class FetchFailedError(SysfsError):
    """A read did not succeed within its retry budget."""


class WriteFailedError(SysfsError):
    """A write did not succeed within its retry budget."""


class ConfigError(EccMonError):
    """Configuration could not be loaded or is invalid."""


class SchedulerError(EccMonError):
    """The polling loop can no longer guarantee periodic sampling."""
