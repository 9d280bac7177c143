"""Shared typer helpers for the perflog CLI."""

from __future__ import annotations

from collections.abc import Callable

import typer
from rich.console import Console

__all__ = ["create_cli", "version_callback"]


def create_cli(name: str, help_text: str, *, no_args_is_help: bool = False) -> typer.Typer:
    """Create a typer app with perflog's common settings."""
    return typer.Typer(
        name=name,
        help=help_text,
        no_args_is_help=no_args_is_help,
        add_completion=False,
        pretty_exceptions_enable=False,
    )


def version_callback(name: str, version: str) -> Callable[[bool | None], None]:
    """Build an eager --version option callback."""

    def _callback(value: bool | None) -> None:
        if value:
            Console().print(f"{name} {version}")
            raise typer.Exit()

    return _callback
