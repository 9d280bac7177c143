"""Smoke tests for the project metadata."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


@pytest.mark.smoke
def test_project_metadata_has_no_long_description_file() -> None:
    """The distribution ships the one-line description only."""
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]

    assert "readme" not in project
    assert project["description"]
    assert project["scripts"]["perflog"] == "perflog.cli:cli"
