"""Centralized configuration for perflog.

Usage:
    from perflog.config import get_config, load_config

    config = get_config()
    print(config.output_dir)
    print(config.report.thresholds)
"""

from perflog.config.loader import (
    PerfLogConfig,
    ReportConfig,
    get_config,
    load_config,
)

__all__ = [
    "PerfLogConfig",
    "ReportConfig",
    "get_config",
    "load_config",
]
