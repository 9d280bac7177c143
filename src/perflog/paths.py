"""Path resolution for perflog config and report files.

- Global: ~/.perflog/ for user-wide settings
- Project: .perflog/ in the effective working directory

Directories are never created here; the report sink creates output
directories when it writes.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perflog.config.loader import PerfLogConfig

GLOBAL_DIR_NAME = ".perflog"
PROJECT_DIR_NAME = ".perflog"
CONFIG_FILE_NAME = "perflog.yaml"

# Timestamp format used for {timestamp} in report file names
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def get_effective_cwd() -> Path:
    """Get the effective working directory.

    Returns PERFLOG_CWD if set, else Path.cwd().
    """
    env_cwd = os.getenv("PERFLOG_CWD")
    if env_cwd:
        return Path(env_cwd).resolve()
    return Path.cwd()


def get_global_dir() -> Path:
    """Get the global perflog directory path (~/.perflog/, not necessarily existing)."""
    return Path.home() / GLOBAL_DIR_NAME


def get_project_dir(start: Path | None = None) -> Path | None:
    """Get the project perflog directory.

    Returns cwd/.perflog if it exists, else None. No tree-walking.

    Args:
        start: Starting directory (default: get_effective_cwd())
    """
    cwd = start or get_effective_cwd()
    candidate = cwd / PROJECT_DIR_NAME
    if candidate.is_dir():
        return candidate
    return None


def expand_path(path: str | Path) -> Path:
    """Expand ~ in a path and make it absolute.

    Does NOT expand ${VAR} patterns.
    """
    return Path(path).expanduser().resolve()


def default_report_path(config: PerfLogConfig, now: datetime | None = None) -> Path:
    """Build the default report path from config.

    Args:
        config: Loaded configuration (output_dir and file_name)
        now: Timestamp for {timestamp} (default: current local time)

    Returns:
        Absolute path for a new report file
    """
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    file_name = config.file_name.replace("{timestamp}", stamp)
    return config.get_output_dir_path() / file_name
