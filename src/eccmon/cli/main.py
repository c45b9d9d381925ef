"""eccmon CLI - memory ECC counter monitor."""

from __future__ import annotations

import json
import signal
from pathlib import Path

import click
from pydantic import ValidationError

from eccmon import __version__
from eccmon.utils.logging import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.version_option(__version__, prog_name="eccmon")
@click.pass_context
def cli(ctx: click.Context, debug: bool, json_output: bool) -> None:
    """eccmon - memory ECC error monitor for management controllers."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["json_output"] = json_output
    setup_logging(level="DEBUG" if debug else "INFO", json_output=json_output)


@cli.command()
@click.option("--sysfs-root", envvar="ECCMON_SYSFS_ROOT", type=click.Path(path_type=Path),
              default="/sys/devices/system/edac/mc/mc0", show_default=True,
              help="EDAC memory controller directory holding ce_count/ue_count")
@click.option("--edac-report", envvar="ECCMON_EDAC_REPORT", type=click.Path(path_type=Path),
              default="/sys/module/edac_core/parameters/edac_report", show_default=True,
              help="EDAC report on/off toggle")
@click.option("--max-log-file", envvar="ECCMON_MAX_LOG_FILE", type=click.Path(path_type=Path),
              default="/etc/ecc/maxlog.conf", show_default=True,
              help="File holding the combined CE+UE log limit")
@click.option("--max-log", envvar="ECCMON_MAX_LOG", type=int, default=None,
              help="Log limit override (skips --max-log-file)")
@click.option("--interval", envvar="ECCMON_INTERVAL", type=float, default=1.0, show_default=True,
              help="Polling interval in seconds")
@click.option("--mode", envvar="ECCMON_MODE", type=click.Choice(["direct", "suppress"]),
              default="direct", show_default=True, help="Event reporting strategy")
@click.option("--window", envvar="ECCMON_WINDOW", type=float, default=3600.0, show_default=True,
              help="Suppression window in seconds (suppress mode)")
@click.option("--max-retries", envvar="ECCMON_MAX_RETRIES", type=int, default=3, show_default=True,
              help="Retries per sysfs access before a cycle is skipped")
@click.option("--retry-forever", is_flag=True, help="Never give up on a sysfs access")
@click.option("--event-log", envvar="ECCMON_EVENT_LOG", type=click.Path(path_type=Path),
              default=None, help="Append incidents to this JSON-lines file")
@click.option("--object-path", envvar="ECCMON_OBJECT_PATH",
              default="/xyz/openbmc_project/memory/ecc", show_default=True,
              help="Source object identifier recorded with each incident")
@click.option("--no-reset", is_flag=True, help="Do not clear hardware counters at startup")
@click.option("--count", type=int, default=0, help="Number of cycles (0=infinite)")
@click.option("--serve", is_flag=True, help="Expose properties over HTTP")
@click.option("--host", default="127.0.0.1", show_default=True, help="HTTP bind address")
@click.option("--port", type=int, default=8000, show_default=True, help="HTTP port")
@click.pass_context
def run(
    ctx: click.Context,
    sysfs_root: Path,
    edac_report: Path,
    max_log_file: Path,
    max_log: int | None,
    interval: float,
    mode: str,
    window: float,
    max_retries: int,
    retry_forever: bool,
    event_log: Path | None,
    object_path: str,
    no_reset: bool,
    count: int,
    serve: bool,
    host: str,
    port: int,
) -> None:
    """Poll the ECC counters and report state until terminated."""
    from eccmon.config import MonitorSettings
    from eccmon.core.monitor import build_monitor
    from eccmon.core.scheduler import PollingScheduler
    from eccmon.exceptions import SchedulerError

    try:
        settings = MonitorSettings(
            sysfs_root=sysfs_root,
            edac_report_path=edac_report,
            max_log_file=max_log_file,
            max_log_limit=max_log,
            poll_interval_s=interval,
            reporting_mode=mode,
            suppression_window_s=window,
            max_retries=None if retry_forever else max_retries,
            event_log=event_log,
            object_path=object_path,
            reset_on_startup=not no_reset,
        )
    except ValidationError as exc:
        click.echo(f"ERROR: invalid configuration: {exc}")
        ctx.exit(2)
        return

    monitor = build_monitor(settings)
    monitor.startup()

    if serve:
        _serve(ctx, monitor, settings.poll_interval_s, host, port)
        return

    scheduler = PollingScheduler(settings.poll_interval_s, monitor.run_cycle)
    previous_handlers = {
        sig: signal.signal(sig, lambda *_: scheduler.stop())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        scheduler.run_forever(max_ticks=count or None)
    except SchedulerError as exc:
        click.echo(f"ERROR: {exc}")
        ctx.exit(1)
        return
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        monitor.sink.close()

    props = monitor.publisher.snapshot()
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(props.model_dump(mode="json", by_alias=True), indent=2))
    else:
        _echo_properties(props)


@cli.command()
@click.option("--sysfs-root", envvar="ECCMON_SYSFS_ROOT", type=click.Path(path_type=Path),
              default="/sys/devices/system/edac/mc/mc0", show_default=True)
@click.option("--edac-report", envvar="ECCMON_EDAC_REPORT", type=click.Path(path_type=Path),
              default="/sys/module/edac_core/parameters/edac_report", show_default=True)
@click.option("--max-retries", type=int, default=3, show_default=True)
@click.pass_context
def status(ctx: click.Context, sysfs_root: Path, edac_report: Path, max_retries: int) -> None:
    """Read the raw CE/UE counters and the EDAC report toggle once."""
    from eccmon.exceptions import FetchFailedError
    from eccmon.sysfs.io import RetryPolicy
    from eccmon.sysfs.source import CounterSource

    source = CounterSource(
        root=sysfs_root,
        edac_report_path=edac_report,
        policy=RetryPolicy(max_retries=max_retries),
    )
    if not source.exists():
        click.echo(f"ERROR: {sysfs_root} does not exist (no EDAC support?)")
        ctx.exit(1)
        return

    try:
        ce = source.read_ce()
        ue = source.read_ue()
    except FetchFailedError as exc:
        click.echo(f"ERROR: {exc}")
        ctx.exit(1)
        return

    # The toggle lives outside the controller tree and may be absent
    try:
        report: str | None = "on" if source.report_enabled() else "off"
    except FetchFailedError:
        report = None

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(
            {"ceCount": ce, "ueCount": ue, "edacReport": report, "root": str(sysfs_root)},
            indent=2,
        ))
    else:
        click.echo(f"ECC counters ({sysfs_root})")
        click.echo("=" * 50)
        click.echo(f"  Correctable:    {ce}")
        click.echo(f"  Uncorrectable:  {ue}")
        click.echo(f"  EDAC report:    {report or 'unknown'}")


@cli.command()
@click.option("--sysfs-root", envvar="ECCMON_SYSFS_ROOT", type=click.Path(path_type=Path),
              default="/sys/devices/system/edac/mc/mc0", show_default=True)
@click.option("--max-retries", type=int, default=3, show_default=True)
@click.pass_context
def reset(ctx: click.Context, sysfs_root: Path, max_retries: int) -> None:
    """Clear the hardware CE/UE counters."""
    from eccmon.exceptions import WriteFailedError
    from eccmon.sysfs.io import RetryPolicy
    from eccmon.sysfs.source import CounterSource

    source = CounterSource(root=sysfs_root, policy=RetryPolicy(max_retries=max_retries))
    try:
        source.reset_counters()
    except WriteFailedError as exc:
        click.echo(f"ERROR: {exc}")
        ctx.exit(1)
        return
    click.echo("Counters reset.")


def _serve(ctx: click.Context, monitor, interval_s: float, host: str, port: int) -> None:
    """Run the HTTP server with polling tied to its lifespan.

    A fatal polling error shuts the server down and exits 1.
    """
    import uvicorn
    from eccmon.api.app import create_app
    from eccmon.core.scheduler import PollingScheduler

    def _shutdown(exc: BaseException) -> None:
        click.echo(f"ERROR: polling stopped: {exc}")
        server.should_exit = True

    scheduler = PollingScheduler(interval_s, monitor.run_cycle, on_error=_shutdown)
    server = uvicorn.Server(uvicorn.Config(create_app(monitor, scheduler), host=host, port=port))
    server.run()
    if scheduler.error is not None:
        ctx.exit(1)


def _echo_properties(props) -> None:
    click.echo("ECC state")
    click.echo("=" * 50)
    click.echo(f"  ceCount:                {props.ce_count}")
    click.echo(f"  ueCount:                {props.ue_count}")
    click.echo(f"  isLoggingLimitReached:  {props.is_logging_limit_reached}")
    click.echo(f"  state:                  {props.state.value}")


if __name__ == "__main__":
    cli()
