"""Named EDAC counter endpoints under a memory-controller sysfs root."""

from __future__ import annotations

from pathlib import Path

from eccmon.sysfs.io import DEFAULT_POLICY, RetryPolicy, read_int, read_value, write_value
from eccmon.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SYSFS_ROOT = Path("/sys/devices/system/edac/mc/mc0")
DEFAULT_EDAC_REPORT_PATH = Path("/sys/module/edac_core/parameters/edac_report")

CE_COUNT_FILE = "ce_count"
UE_COUNT_FILE = "ue_count"
RESET_COUNTERS_FILE = "reset_counters"

RESET_TOKEN = "1"
REPORT_ON = "on"
REPORT_OFF = "off"


class CounterSource:
    """Reads CE/UE counters and drives the reset and report-toggle endpoints."""

    def __init__(
        self,
        root: Path | str = DEFAULT_SYSFS_ROOT,
        edac_report_path: Path | str = DEFAULT_EDAC_REPORT_PATH,
        policy: RetryPolicy = DEFAULT_POLICY,
    ) -> None:
        self._root = Path(root)
        self._edac_report_path = Path(edac_report_path)
        self._policy = policy

    @property
    def root(self) -> Path:
        return self._root

    @property
    def edac_report_path(self) -> Path:
        return self._edac_report_path

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def exists(self) -> bool:
        return self._root.exists()

    def read_ce(self) -> int:
        return self._read_counter(CE_COUNT_FILE)

    def read_ue(self) -> int:
        return self._read_counter(UE_COUNT_FILE)

    def _read_counter(self, name: str) -> int:
        return read_int(self._root / name, self._policy, non_negative=True)

    def report_enabled(self) -> bool:
        """Whether the kernel's EDAC error reporting is currently on."""
        return read_value(self._edac_report_path, self._policy) == REPORT_ON

    def reset_counters(self) -> None:
        """Clear the hardware CE/UE counters."""
        write_value(self._root / RESET_COUNTERS_FILE, RESET_TOKEN, self._policy)
        logger.info("ecc_counters_reset", root=str(self._root))

    def set_report_enabled(self, enabled: bool) -> None:
        """Turn the kernel's EDAC error reporting on or off."""
        op = REPORT_ON if enabled else REPORT_OFF
        write_value(self._edac_report_path, op, self._policy)
        logger.info("edac_report_set", path=str(self._edac_report_path), value=op)
