"""perflog - frame-time sampling and statistical reports.

Features:
- Append-only frame and custom event capture per session
- Mean, RMS, min/max and nearest-rank percentile frame times
- Threshold buckets for frames slower than FPS cutoffs
- Synchronous or background report dumps with single-shot completion

Usage:
    from perflog import PerformanceLogger

    perf = PerformanceLogger()
    perf.start_session()
    ...  # call perf.tick() once per frame
    report = perf.end_session(extra_info="Level 3")
    print(report.render())

    # Re-analyse an existing log
    perflog analyze perflogs/perflog_2026-01-01_12-00-00.txt
"""

from importlib.metadata import version

from perflog.errors import (
    EmptySessionError,
    NoActiveSessionError,
    PerfLogError,
    ReportParseError,
    ReportWriteError,
)
from perflog.report import Report, ReportEngine, ReportSummary, ThresholdBucket
from perflog.session import DumpHandle, PerformanceLogger, Session, SessionState
from perflog.sink import DumpResult, FileSink, write_report
from perflog.store import CustomEvent, FrameSample, SampleStore

__version__ = version("perflog")

__all__ = [
    "CustomEvent",
    "DumpHandle",
    "DumpResult",
    "EmptySessionError",
    "FileSink",
    "FrameSample",
    "NoActiveSessionError",
    "PerfLogError",
    "PerformanceLogger",
    "Report",
    "ReportEngine",
    "ReportParseError",
    "ReportSummary",
    "ReportWriteError",
    "SampleStore",
    "Session",
    "SessionState",
    "ThresholdBucket",
    "__version__",
    "write_report",
]
