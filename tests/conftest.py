"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from eccmon.sysfs.io import RetryPolicy


def write_counts(root: Path, ce: int | str, ue: int | str) -> None:
    """Set the fake controller's ce_count / ue_count files."""
    (root / "ce_count").write_text(f"{ce}\n")
    (root / "ue_count").write_text(f"{ue}\n")


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    """Provide a fake EDAC memory controller directory with zeroed counters."""
    root = tmp_path / "edac" / "mc" / "mc0"
    root.mkdir(parents=True)
    write_counts(root, 0, 0)
    (root / "reset_counters").write_text("")
    return root


@pytest.fixture
def edac_report(tmp_path: Path) -> Path:
    """Provide a fake edac_report toggle file, initially on."""
    path = tmp_path / "edac_report"
    path.write_text("on\n")
    return path


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy that never sleeps."""
    return RetryPolicy(max_retries=2, delay_s=0.0)


@pytest.fixture
def set_counts(sysfs_root: Path):
    """Return a setter for the fake controller's counters."""
    def _set(ce: int | str, ue: int | str = 0) -> None:
        write_counts(sysfs_root, ce, ue)
    return _set
