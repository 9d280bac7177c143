"""Smoke tests for the perflog CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import call, patch

import pytest
import yaml
from loguru import logger
from typer.testing import CliRunner

from perflog.cli import app
from perflog.report import ReportEngine
from perflog.sink import write_report
from perflog.store import SampleStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI callback replaces loguru sinks with the runner's stderr."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def report_file(tmp_path: Path) -> Path:
    store = SampleStore()
    for elapsed, duration in [(0.05, 8.0), (0.1, 16.0), (0.15, 33.0), (0.2, 70.0)]:
        store.record_frame(elapsed, duration)
    store.record_event(0.1, "spawn")
    path = tmp_path / "run.txt"
    write_report(ReportEngine().build(store, "Original", "ENV"), path)
    return path


@pytest.mark.smoke
@pytest.mark.cli
def test_perflog_help() -> None:
    """Verify perflog --help runs successfully."""
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "analyze" in result.output


@pytest.mark.smoke
@pytest.mark.cli
def test_perflog_version() -> None:
    """Verify perflog --version prints the package name."""
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "perflog" in result.output


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_prints_summary(report_file: Path) -> None:
    """analyze recomputes statistics from a report."""
    result = runner.invoke(app, ["analyze", str(report_file)])

    assert result.exit_code == 0
    assert "Average" in result.output
    assert "1 custom events" in result.output


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_writes_regenerated_report(report_file: Path, tmp_path: Path) -> None:
    """analyze --output writes a report with the same raw data."""
    output = tmp_path / "out" / "recomputed.txt"

    result = runner.invoke(
        app,
        ["analyze", str(report_file), "--output", str(output), "--extra-info", "Recomputed"],
    )

    assert result.exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert text.startswith("Recomputed\n\n\nLog duration: 0.2s\nTotal frames: 4")
    assert "Custom events:\n0.1, spawn" in text
    assert text.endswith("Frametimes:\n0.05, 8\n0.1, 16\n0.15, 33\n0.2, 70")


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_uses_config_thresholds(report_file: Path, tmp_path: Path) -> None:
    """Config thresholds apply to the regenerated report."""
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "report": {"thresholds": [50]}}))
    output = tmp_path / "recomputed.txt"

    result = runner.invoke(
        app, ["analyze", str(report_file), "-c", str(config), "-o", str(output)]
    )

    assert result.exit_code == 0
    text = output.read_text(encoding="utf-8")
    assert "FPS < 50: 2 frames (50%)" in text
    assert "FPS < 120" not in text


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_rejects_malformed_report(tmp_path: Path) -> None:
    """A file without frame times exits with status 1."""
    bad = tmp_path / "bad.txt"
    bad.write_text("not a report\n")

    result = runner.invoke(app, ["analyze", str(bad)])

    assert result.exit_code == 1


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_missing_file(tmp_path: Path) -> None:
    """A missing report is a usage error."""
    result = runner.invoke(app, ["analyze", str(tmp_path / "missing.txt")])

    assert result.exit_code == 2


@pytest.mark.smoke
@pytest.mark.cli
def test_config_validate_ok(tmp_path: Path) -> None:
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "output_dir": "logs"}))

    result = runner.invoke(app, ["config", "validate", "-c", str(config)])

    assert result.exit_code == 0


@pytest.mark.smoke
@pytest.mark.cli
def test_config_validate_invalid(tmp_path: Path) -> None:
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "report": {"thresholds": [0]}}))

    result = runner.invoke(app, ["config", "validate", "-c", str(config)])

    assert result.exit_code == 1


@pytest.mark.smoke
@pytest.mark.cli
def test_config_show(tmp_path: Path) -> None:
    """config show prints the effective configuration as YAML."""
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "output_dir": "proj-logs"}))

    result = runner.invoke(app, ["config", "show", "-c", str(config)])

    assert result.exit_code == 0
    shown = yaml.safe_load(result.output)
    assert shown["output_dir"] == "proj-logs"
    assert shown["report"]["timing_sig_figs"] == 4


@pytest.mark.smoke
@pytest.mark.cli
def test_analyze_applies_config_log_level(report_file: Path, tmp_path: Path) -> None:
    """Without --log-level the config's log_level configures logging."""
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "log_level": "DEBUG"}))

    with patch("perflog.cli.configure_logging") as configure:
        result = runner.invoke(app, ["analyze", str(report_file), "-c", str(config)])

    assert result.exit_code == 0
    assert configure.call_args_list[-1] == call("DEBUG")


@pytest.mark.smoke
@pytest.mark.cli
def test_log_level_option_overrides_config(report_file: Path, tmp_path: Path) -> None:
    """An explicit --log-level wins over the config file."""
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "log_level": "DEBUG"}))

    with patch("perflog.cli.configure_logging") as configure:
        result = runner.invoke(
            app, ["--log-level", "error", "analyze", str(report_file), "-c", str(config)]
        )

    assert result.exit_code == 0
    assert configure.call_args_list == [call("ERROR")]


@pytest.mark.smoke
@pytest.mark.cli
def test_config_show_applies_config_log_level(tmp_path: Path) -> None:
    config = tmp_path / "perflog.yaml"
    config.write_text(yaml.dump({"version": 1, "log_level": "ERROR"}))

    with patch("perflog.cli.configure_logging") as configure:
        result = runner.invoke(app, ["config", "show", "-c", str(config)])

    assert result.exit_code == 0
    assert configure.call_args_list == [call("WARNING"), call("ERROR")]
