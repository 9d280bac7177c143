"""perflog CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

import perflog
from perflog._cli import create_cli, version_callback
from perflog.errors import PerfLogError
from perflog.logging import configure_logging
from perflog.report import Report
from perflog.utils.format import format_number, round_to_sig_figs

if TYPE_CHECKING:
    from perflog.config import PerfLogConfig

app = create_cli(
    "perflog",
    "Frame-time report tools: re-analyse logs and manage configuration.",
    no_args_is_help=True,
)

console = Console()
_stderr_console = Console(stderr=True)

config_app = typer.Typer(
    name="config",
    help="Validate and inspect perflog configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app)


@app.callback()
def main(
    ctx: typer.Context,
    _version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback("perflog", perflog.__version__),
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Minimum log level written to stderr (default: config log_level, else WARNING).",
    ),
) -> None:
    """Frame-time report tools.

    Commands:
        analyze  - Recompute statistics from an existing report
        config   - Validate or show configuration
    """
    ctx.obj = log_level
    configure_logging((log_level or "WARNING").upper())


def _apply_config_log_level(ctx: typer.Context, cfg: PerfLogConfig) -> None:
    """Use the config log level unless --log-level was given."""
    if ctx.obj is None:
        configure_logging(cfg.log_level)


def _fail(message: str) -> typer.Exit:
    _stderr_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(1)


def _print_summary(report: Report, source: Path) -> None:
    s = report.summary

    def timing(value: float) -> str:
        return format_number(round_to_sig_figs(value, report.timing_sig_figs))

    def percent(value: float) -> str:
        return format_number(round_to_sig_figs(value, report.percent_sig_figs))

    table = Table(title=f"{source.name}: {s.frame_count} frames over {timing(s.duration)}s")
    table.add_column("Metric")
    table.add_column("Frametime (ms)", justify="right")
    table.add_column("FPS", justify="right")
    table.add_row("Average", timing(s.mean), timing(s.mean_fps))
    table.add_row("RMS", timing(s.rms), timing(s.rms_fps))
    table.add_row("Minimum", timing(s.minimum), timing(s.fastest_fps))
    table.add_row("Maximum", timing(s.maximum), timing(s.slowest_fps))
    table.add_row("p10", timing(s.p10), timing(s.p10_fps))
    table.add_row("p90", timing(s.p90), timing(s.p90_fps))
    console.print(table)

    buckets = Table(title="Frames below FPS cutoff")
    buckets.add_column("Cutoff", justify="right")
    buckets.add_column("Frames", justify="right")
    buckets.add_column("% frames", justify="right")
    buckets.add_column("Time (s)", justify="right")
    buckets.add_column("% duration", justify="right")
    for bucket in report.buckets:
        buckets.add_row(
            f"< {format_number(bucket.cutoff_fps)}",
            str(bucket.frame_count),
            percent(bucket.frame_percent),
            timing(bucket.total_seconds),
            percent(bucket.duration_percent),
        )
    console.print(buckets)

    if report.events:
        console.print(f"[dim]{len(report.events)} custom events[/dim]")


@app.command("analyze")
def analyze(
    ctx: typer.Context,
    logfile: Path = typer.Argument(
        ...,
        help="Report file written by perflog.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    extra_info: str = typer.Option(
        "",
        "--extra-info",
        "-e",
        help="Text placed at the top of a regenerated report.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the regenerated report to this path.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to perflog.yaml configuration file.",
        exists=True,
        readable=True,
    ),
) -> None:
    """Recompute statistics from the raw frame times in a report.

    Examples:
        perflog analyze perflogs/run.txt
        perflog analyze perflogs/run.txt -o perflogs/run-recomputed.txt
    """
    from perflog.config import load_config
    from perflog.parse import load_store, read_report
    from perflog.sink import write_report

    try:
        cfg = load_config(config)
        _apply_config_log_level(ctx, cfg)
        parsed = read_report(logfile)
        store = load_store(parsed)
        if parsed.total_frames is not None and parsed.total_frames != store.count():
            _stderr_console.print(
                f"[yellow]Report header says {parsed.total_frames} frames, "
                f"found {store.count()} raw samples[/yellow]"
            )
        report = cfg.report.create_engine().build(store, extra_info)
    except (PerfLogError, ValueError, FileNotFoundError) as e:
        raise _fail(str(e)) from e

    _print_summary(report, logfile)

    if output is not None:
        try:
            result = write_report(report, output)
        except PerfLogError as e:
            raise _fail(str(e)) from e
        console.print(f"[green]✓ Report written to {result.path}[/green]")


@config_app.command("validate")
def config_validate(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to perflog.yaml (default: resolved like the library).",
    ),
) -> None:
    """Validate a configuration file."""
    from perflog.config.loader import load_config, resolve_config_path

    resolved = resolve_config_path(config)
    if resolved is None:
        console.print("No configuration file found, defaults apply.")
        return

    try:
        load_config(resolved)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(f"{resolved}: {e}") from e

    console.print(f"[green]✓ {resolved}[/green]")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to perflog.yaml (default: resolved like the library).",
    ),
) -> None:
    """Print the effective configuration as YAML."""
    from perflog.config import load_config

    try:
        cfg = load_config(config)
    except (ValueError, FileNotFoundError) as e:
        raise _fail(str(e)) from e
    _apply_config_log_level(ctx, cfg)

    console.print(
        yaml.safe_dump(cfg.model_dump(), sort_keys=False),
        end="",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def cli() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    cli()
