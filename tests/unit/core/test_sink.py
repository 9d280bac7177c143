"""Unit tests for report persistence."""

from __future__ import annotations

from pathlib import Path

import pytest

from perflog.errors import ReportWriteError
from perflog.report import Report, ReportEngine
from perflog.sink import FileSink, write_report
from perflog.store import SampleStore


@pytest.fixture
def report() -> Report:
    store = SampleStore()
    store.record_frame(0.5, 8.0)
    store.record_frame(1.0, 16.0)
    return ReportEngine().build(store, "Sink test", "ENV")


class RecordingSink:
    """Sink that keeps writes in memory."""

    def __init__(self) -> None:
        self.writes: dict[Path, bytes] = {}

    def write(self, path: Path, data: bytes) -> Path:
        self.writes[path] = data
        return path


@pytest.mark.unit
@pytest.mark.core
class TestFileSink:
    """Test filesystem writes."""

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "report.txt"

        written = FileSink().write(target, b"data")

        assert written == target
        assert target.read_bytes() == b"data"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "report.txt"
        target.write_bytes(b"old contents that are longer")

        FileSink().write(target, b"new")

        assert target.read_bytes() == b"new"


@pytest.mark.unit
@pytest.mark.core
class TestWriteReport:
    """Test serializing and writing a report."""

    def test_writes_serialized_bytes(self, report: Report, tmp_path: Path) -> None:
        result = write_report(report, tmp_path / "run.txt")

        assert result.report is report
        assert result.path == tmp_path / "run.txt"
        assert result.size_bytes == len(report.to_bytes())
        assert result.path.read_bytes() == report.to_bytes()

    def test_accepts_string_path(self, report: Report, tmp_path: Path) -> None:
        result = write_report(report, str(tmp_path / "run.txt"))

        assert result.path == tmp_path / "run.txt"

    def test_custom_sink(self, report: Report) -> None:
        sink = RecordingSink()

        result = write_report(report, "memory/run.txt", sink)

        assert sink.writes == {Path("memory/run.txt"): report.to_bytes()}
        assert result.size_bytes == len(report.to_bytes())

    def test_failure_wraps_os_error(self, report: Report, tmp_path: Path) -> None:
        """A directory in place of the file makes the write fail."""
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(ReportWriteError) as exc_info:
            write_report(report, target)

        error = exc_info.value
        assert error.path == target
        assert error.report is report
        assert isinstance(error.cause, OSError)

    def test_report_retryable_after_failure(self, report: Report, tmp_path: Path) -> None:
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(ReportWriteError) as exc_info:
            write_report(report, target)

        retried = write_report(exc_info.value.report, tmp_path / "retry.txt")
        assert retried.path.read_bytes() == report.to_bytes()
