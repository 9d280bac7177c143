"""Exception types raised by perflog.

All errors are recoverable at the call site. None of them indicate a corrupt
logger; the caller can keep using the controller after catching one.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perflog.report import Report

__all__ = [
    "EmptySessionError",
    "NoActiveSessionError",
    "PerfLogError",
    "ReportParseError",
    "ReportWriteError",
]


class PerfLogError(Exception):
    """Base class for all perflog errors."""


class NoActiveSessionError(PerfLogError):
    """Ingestion or end-of-session was requested with no live session."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"No logger was running ({operation})")


class EmptySessionError(PerfLogError):
    """A report was requested over a session with zero recorded frames."""

    def __init__(self) -> None:
        super().__init__("Cannot build a report: no frames were recorded")


class ReportWriteError(PerfLogError):
    """The persistence sink failed to write a report.

    The computed report is kept on the exception so it can be written
    to a different path.
    """

    def __init__(self, path: Path, report: Report | None, cause: Exception) -> None:
        self.path = path
        self.report = report
        self.cause = cause
        super().__init__(f"Failed to write report to {path}: {cause}")


class ReportParseError(PerfLogError):
    """A serialized report could not be read back."""
