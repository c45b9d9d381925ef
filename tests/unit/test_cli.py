"""Unit tests for the eccmon command line."""

from __future__ import annotations

import json
import time
from pathlib import Path
from types import SimpleNamespace

import uvicorn
from click.testing import CliRunner
from fastapi.testclient import TestClient

from eccmon.cli.main import cli
from eccmon.core.monitor import EccMonitor


def _run_args(sysfs_root: Path, edac_report: Path, *extra: str) -> list[str]:
    return [
        "run",
        "--sysfs-root", str(sysfs_root),
        "--edac-report", str(edac_report),
        "--interval", "0.01",
        "--max-retries", "0",
        "--no-reset",
        *extra,
    ]


class TestStatus:
    def test_prints_counters(self, sysfs_root: Path, set_counts):
        set_counts(7, 2)
        result = CliRunner().invoke(cli, ["status", "--sysfs-root", str(sysfs_root)])

        assert result.exit_code == 0
        assert "Correctable:    7" in result.output
        assert "Uncorrectable:  2" in result.output

    def test_json_output(self, sysfs_root: Path, set_counts):
        set_counts(7, 2)
        result = CliRunner().invoke(
            cli, ["--json-output", "status", "--sysfs-root", str(sysfs_root)],
        )

        assert result.exit_code == 0
        assert '"ceCount": 7' in result.output
        assert '"ueCount": 2' in result.output

    def test_reports_edac_toggle(self, sysfs_root: Path, edac_report: Path):
        edac_report.write_text("off\n")
        args = ["status", "--sysfs-root", str(sysfs_root), "--edac-report", str(edac_report)]

        result = CliRunner().invoke(cli, args)
        assert result.exit_code == 0
        assert "EDAC report:    off" in result.output

        result = CliRunner().invoke(cli, ["--json-output"] + args)
        assert '"edacReport": "off"' in result.output

    def test_missing_edac_toggle_is_not_fatal(self, sysfs_root: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, [
            "status", "--sysfs-root", str(sysfs_root),
            "--edac-report", str(tmp_path / "absent"), "--max-retries", "0",
        ])
        assert result.exit_code == 0
        assert "EDAC report:    unknown" in result.output

    def test_missing_root(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["status", "--sysfs-root", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_unreadable_counter(self, sysfs_root: Path):
        (sysfs_root / "ue_count").unlink()
        result = CliRunner().invoke(
            cli, ["status", "--sysfs-root", str(sysfs_root), "--max-retries", "0"],
        )
        assert result.exit_code == 1
        assert "ERROR" in result.output


class TestReset:
    def test_writes_reset_token(self, sysfs_root: Path):
        result = CliRunner().invoke(cli, ["reset", "--sysfs-root", str(sysfs_root)])

        assert result.exit_code == 0
        assert "Counters reset." in result.output
        assert (sysfs_root / "reset_counters").read_text() == "1"

    def test_write_failure(self, tmp_path: Path):
        result = CliRunner().invoke(
            cli, ["reset", "--sysfs-root", str(tmp_path / "nope"), "--max-retries", "0"],
        )
        assert result.exit_code == 1
        assert "ERROR" in result.output


class TestRun:
    def test_bounded_run_prints_state(self, sysfs_root: Path, edac_report: Path, set_counts):
        set_counts(3, 0)
        result = CliRunner().invoke(
            cli, _run_args(sysfs_root, edac_report, "--max-log", "5", "--count", "2"),
        )

        assert result.exit_code == 0, result.output
        assert "CorrectableEvent" in result.output
        assert edac_report.read_text().strip() == "on"

    def test_log_full_disables_report(self, sysfs_root: Path, edac_report: Path, set_counts):
        set_counts(3, 3)
        result = CliRunner().invoke(
            cli,
            ["--json-output"] + _run_args(sysfs_root, edac_report, "--max-log", "5", "--count", "1"),
        )

        assert result.exit_code == 0, result.output
        assert '"ceCount": 3' in result.output
        assert '"state": "LogFull"' in result.output
        assert '"isLoggingLimitReached": true' in result.output
        assert edac_report.read_text() == "off"

    def test_limit_file_and_event_log(
        self, sysfs_root: Path, edac_report: Path, set_counts, tmp_path: Path,
    ):
        limit_file = tmp_path / "maxlog.conf"
        limit_file.write_text("100\n")
        events = tmp_path / "events.jsonl"
        set_counts(2, 1)

        result = CliRunner().invoke(
            cli,
            _run_args(
                sysfs_root, edac_report,
                "--max-log-file", str(limit_file),
                "--event-log", str(events),
                "--count", "1",
            ),
        )

        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in events.read_text().splitlines()]
        assert [r["kind"] for r in records] == ["correctable", "correctable", "uncorrectable"]
        assert "UncorrectableEvent" in result.output

    def test_suppress_mode(self, sysfs_root: Path, edac_report: Path, set_counts):
        set_counts(6, 0)
        result = CliRunner().invoke(
            cli,
            _run_args(
                sysfs_root, edac_report,
                "--mode", "suppress", "--window", "30", "--max-log", "5", "--count", "1",
            ),
        )

        assert result.exit_code == 0, result.output
        assert "LogFull" in result.output

    def test_invalid_interval(self, sysfs_root: Path, edac_report: Path):
        args = _run_args(sysfs_root, edac_report, "--count", "1")
        args[args.index("0.01")] = "0"
        result = CliRunner().invoke(cli, args)

        assert result.exit_code == 2
        assert "invalid configuration" in result.output

    def test_reset_on_startup(self, sysfs_root: Path, edac_report: Path):
        args = _run_args(sysfs_root, edac_report, "--max-log", "5", "--count", "1")
        args.remove("--no-reset")
        result = CliRunner().invoke(cli, args)

        assert result.exit_code == 0, result.output
        assert (sysfs_root / "reset_counters").read_text() == "1"


class TestServe:
    def test_polling_failure_stops_server(
        self, sysfs_root: Path, edac_report: Path, monkeypatch,
    ):
        servers = []

        class FakeServer:
            def __init__(self, config) -> None:
                self.config = config
                self.should_exit = False
                servers.append(self)

            def run(self) -> None:
                with TestClient(self.config.app):
                    deadline = time.monotonic() + 5.0
                    while not self.should_exit and time.monotonic() < deadline:
                        time.sleep(0.01)

        def broken_cycle(self):
            raise RuntimeError("controller vanished")

        monkeypatch.setattr(uvicorn, "Server", FakeServer)
        monkeypatch.setattr(
            uvicorn, "Config", lambda app, host, port: SimpleNamespace(app=app, host=host, port=port),
        )
        monkeypatch.setattr(EccMonitor, "run_cycle", broken_cycle)

        result = CliRunner().invoke(cli, _run_args(sysfs_root, edac_report, "--serve"))

        assert result.exit_code == 1
        assert servers[0].should_exit is True
        assert "controller vanished" in result.output
