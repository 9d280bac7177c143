"""YAML configuration loading for perflog.

Loads perflog.yaml with report and output settings.

Example perflog.yaml:

    version: 1
    log_level: INFO

    output_dir: ~/perflogs
    file_name: "perflog_{timestamp}.txt"
    async_dump: true
    include_system_specs: true

    report:
      thresholds: [120, 60, 30, 15, 5, 1]
      timing_sig_figs: 4
      percent_sig_figs: 3

    # Use !include for shared report settings
    # report: !include report.yaml
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from perflog.paths import CONFIG_FILE_NAME, get_effective_cwd, get_global_dir, get_project_dir
from perflog.report import DEFAULT_THRESHOLDS, ReportEngine


class IncludeLoader(yaml.SafeLoader):
    """YAML loader that supports the !include tag.

    Paths are resolved relative to the including file.
    """

    _base_path: Path | None = None

    @classmethod
    def with_base_path(cls, base_path: Path) -> type[IncludeLoader]:
        """Create a loader class with a specific base path for includes."""

        class BoundLoader(cls):  # type: ignore[valid-type,misc]
            _base_path = base_path

        return BoundLoader


def _include_constructor(loader: IncludeLoader, node: yaml.Node) -> Any:
    """Handle !include YAML tag by loading the referenced file."""
    include_path = loader.construct_scalar(node)  # type: ignore[arg-type]

    if loader._base_path is None:
        raise yaml.YAMLError(f"Cannot resolve !include path: {include_path}")

    resolved = (loader._base_path / include_path).resolve()

    if not resolved.exists():
        logger.warning(f"!include file not found: {resolved}")
        return None

    try:
        with resolved.open() as f:
            bound_loader = IncludeLoader.with_base_path(resolved.parent)
            return yaml.load(f, Loader=bound_loader)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error loading !include {include_path}: {e}") from e


IncludeLoader.add_constructor("!include", _include_constructor)

CURRENT_CONFIG_VERSION = 1


class ReportConfig(BaseModel):
    """Statistics and formatting settings for reports."""

    thresholds: list[float] = Field(
        default_factory=lambda: list(DEFAULT_THRESHOLDS),
        min_length=1,
        description="FPS cutoffs for threshold buckets, in report order",
    )
    timing_sig_figs: int = Field(
        default=4,
        ge=1,
        le=15,
        description="Significant figures for frame times and rates",
    )
    percent_sig_figs: int = Field(
        default=3,
        ge=1,
        le=15,
        description="Significant figures for percentages",
    )

    @field_validator("thresholds")
    @classmethod
    def _positive_thresholds(cls, value: list[float]) -> list[float]:
        for cutoff in value:
            if cutoff <= 0:
                raise ValueError(f"FPS cutoff must be positive, got {cutoff}")
        return value

    def create_engine(self) -> ReportEngine:
        """Build a ReportEngine with these settings."""
        return ReportEngine(
            thresholds=self.thresholds,
            timing_sig_figs=self.timing_sig_figs,
            percent_sig_figs=self.percent_sig_figs,
        )


class PerfLogConfig(BaseModel):
    """Root configuration for perflog."""

    # Directory of the loaded config file (not serialized)
    _config_dir: Path | None = PrivateAttr(default=None)

    version: int = Field(
        default=1,
        description="Config schema version for migration support",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    output_dir: str = Field(
        default="perflogs",
        description="Directory for report files (relative to the config file, ~ expanded)",
    )
    file_name: str = Field(
        default="perflog_{timestamp}.txt",
        description="Report filename pattern (supports {timestamp})",
    )
    async_dump: bool = Field(
        default=True,
        description="Build and write reports on a background worker",
    )
    include_system_specs: bool = Field(
        default=True,
        description="Append a host description when none is supplied",
    )
    report: ReportConfig = Field(
        default_factory=ReportConfig,
        description="Statistics and formatting settings",
    )

    @field_validator("file_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"file_name must be a plain filename, got {value!r}")
        return value

    def get_output_dir_path(self) -> Path:
        """Resolve the report output directory.

        - Absolute paths: returned as-is
        - ~ expansion: expanded to home directory
        - Relative paths: resolved against the config file directory, or
          the effective cwd when the config was not loaded from a file
        """
        path = Path(self.output_dir).expanduser()
        if path.is_absolute():
            return path
        if self._config_dir is not None:
            return (self._config_dir / path).resolve()
        return (get_effective_cwd() / path).resolve()


def resolve_config_path(config_path: Path | str | None) -> Path | None:
    """Resolve config path from explicit path, env var, or default locations.

    Resolution order:
    1. Explicit config_path if provided
    2. PERFLOG_CONFIG env var
    3. cwd/.perflog/perflog.yaml
    4. ~/.perflog/perflog.yaml
    5. None (use defaults)
    """
    if config_path is not None:
        return Path(config_path)

    env_config = os.getenv("PERFLOG_CONFIG")
    if env_config:
        return Path(env_config)

    project_dir = get_project_dir()
    if project_dir is not None:
        project_config = project_dir / CONFIG_FILE_NAME
        if project_config.exists():
            return project_config

    global_config = get_global_dir() / CONFIG_FILE_NAME
    if global_config.exists():
        return global_config

    return None


def _load_yaml_file(config_path: Path) -> dict[str, Any]:
    """Load and parse YAML file with error handling.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If YAML is invalid or file can't be read.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open() as f:
            bound_loader = IncludeLoader.with_base_path(config_path.parent)
            raw_data = yaml.load(f, Loader=bound_loader)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Error reading {config_path}: {e}") from e

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ValueError(f"Config root must be a mapping in {config_path}")
    return raw_data


def _validate_version(data: dict[str, Any], config_path: Path) -> None:
    """Validate config version and set default if missing.

    Raises:
        ValueError: If version is unsupported.
    """
    config_version = data.get("version")
    if config_version is None:
        logger.warning(
            f"Config file missing 'version' field, assuming version 1. "
            f"Add 'version: {CURRENT_CONFIG_VERSION}' to {config_path}"
        )
        data["version"] = 1
    elif config_version > CURRENT_CONFIG_VERSION:
        raise ValueError(
            f"Config version {config_version} is not supported. "
            f"Maximum supported version is {CURRENT_CONFIG_VERSION}."
        )


def load_config(config_path: Path | str | None = None) -> PerfLogConfig:
    """Load perflog configuration from YAML file.

    Resolution order (when config_path is None):
    1. PERFLOG_CONFIG env var
    2. cwd/.perflog/perflog.yaml
    3. ~/.perflog/perflog.yaml
    4. Built-in defaults

    Args:
        config_path: Path to config file (overrides resolution)

    Returns:
        Validated PerfLogConfig

    Raises:
        FileNotFoundError: If explicit config path doesn't exist
        ValueError: If YAML is invalid or validation fails
    """
    resolved_path = resolve_config_path(config_path)

    if resolved_path is None:
        logger.debug("No config file found, using defaults")
        return PerfLogConfig()

    logger.debug(f"Loading config from {resolved_path}")

    raw_data = _load_yaml_file(resolved_path)
    _validate_version(raw_data, resolved_path)

    try:
        config = PerfLogConfig.model_validate(raw_data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {resolved_path}: {e}") from e

    config._config_dir = resolved_path.parent.resolve()
    logger.info(f"Config loaded: version {config.version}")

    return config


# Global config instance
_config: PerfLogConfig | None = None


def get_config(
    config_path: Path | str | None = None, reload: bool = False
) -> PerfLogConfig:
    """Get or load the global configuration.

    Args:
        config_path: Path to config file (only used on first load)
        reload: Force reload configuration

    Returns:
        PerfLogConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config
