"""Persistence sink for serialized reports.

The report engine never touches the filesystem. Sinks receive a path and
the serialized bytes and own directory creation and the write itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from loguru import logger

from perflog.errors import ReportWriteError
from perflog.report import Report

__all__ = ["DumpResult", "FileSink", "ReportSink", "write_report"]


class ReportSink(Protocol):
    """Destination for serialized reports."""

    def write(self, path: Path, data: bytes) -> Path:
        """Persist data at path and return the final location."""
        ...


class FileSink:
    """Writes reports to the local filesystem."""

    def write(self, path: Path, data: bytes) -> Path:
        """Write data to path, creating parent directories as needed.

        Raises:
            OSError: If the directory or file cannot be written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


@dataclass(frozen=True)
class DumpResult:
    """Outcome of writing a report."""

    report: Report
    path: Path
    size_bytes: int


def write_report(
    report: Report, path: Path | str, sink: ReportSink | None = None
) -> DumpResult:
    """Serialize a report and hand it to a sink.

    Args:
        report: Report to persist
        path: Destination path
        sink: Sink to write through (default: FileSink)

    Returns:
        DumpResult with the written location

    Raises:
        ReportWriteError: If the sink fails; the report stays retryable
    """
    sink = sink or FileSink()
    data = report.to_bytes()
    target = Path(path)

    try:
        written = sink.write(target, data)
    except OSError as e:
        logger.error(f"Failed to write report to {target}: {e}")
        raise ReportWriteError(target, report, e) from e

    logger.info(f"Report written to {written} ({len(data)} bytes)")
    return DumpResult(report=report, path=written, size_bytes=len(data))
