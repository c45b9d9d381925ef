"""File-backed access to the kernel's EDAC counters."""

from eccmon.sysfs.io import RetryPolicy, read_int, read_value, write_value
from eccmon.sysfs.source import CounterSource

__all__ = [
    "CounterSource",
    "RetryPolicy",
    "read_int",
    "read_value",
    "write_value",
]
