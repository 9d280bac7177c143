"""Statistical summary and text rendering of a finished session.

The engine consumes a frozen SampleStore and produces an immutable Report.
Statistics:

- duration: elapsed time of the last-inserted sample
- mean and RMS frame time
- min and max frame time, with inverted frame rates (1000/min is the
  fastest rate, 1000/max the slowest)
- p10 and p90 by nearest-rank selection
- overlapping threshold buckets: frames slower than each FPS cutoff

Divisions by zero produce IEEE inf/nan instead of raising; they are rendered
as ``Infinity``/``NaN`` in the report text.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from perflog.errors import EmptySessionError
from perflog.store import CustomEvent, FrameSample, SampleStore
from perflog.utils.format import format_number, round_to_sig_figs

__all__ = [
    "DEFAULT_THRESHOLDS",
    "Report",
    "ReportEngine",
    "ReportSummary",
    "ThresholdBucket",
    "nearest_rank",
]

DEFAULT_THRESHOLDS: tuple[float, ...] = (120, 60, 30, 15, 5, 1)


def _divide(numerator: float, denominator: float) -> float:
    """Float division with IEEE semantics for a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


def _to_fps(duration_ms: float) -> float:
    return _divide(1000.0, duration_ms)


def nearest_rank(ordered: Sequence[float], fraction: float) -> float:
    """Select a percentile from ascending values by nearest rank.

    The index is ``round(n * fraction) - 1`` clamped to ``[0, n - 1]``.
    No interpolation.

    Args:
        ordered: Values sorted ascending (must be non-empty)
        fraction: Percentile as a fraction (0.1 for p10)

    Returns:
        Selected value
    """
    count = len(ordered)
    index = round(count * fraction) - 1
    index = min(max(index, 0), count - 1)
    return ordered[index]


@dataclass(frozen=True)
class ThresholdBucket:
    """Frames slower than an FPS cutoff.

    Attributes:
        cutoff_fps: FPS cutoff; frames with 1000/duration below it count
        frame_count: Number of frames below the cutoff
        frame_percent: frame_count as a percentage of all frames
        total_seconds: Time spent in those frames, in seconds
        duration_percent: total_seconds as a percentage of the log duration
    """

    cutoff_fps: float
    frame_count: int
    frame_percent: float
    total_seconds: float
    duration_percent: float


@dataclass(frozen=True)
class ReportSummary:
    """Summary statistics over all frame durations (milliseconds)."""

    duration: float
    frame_count: int
    mean: float
    rms: float
    minimum: float
    maximum: float
    p10: float
    p90: float

    @property
    def mean_fps(self) -> float:
        return _to_fps(self.mean)

    @property
    def rms_fps(self) -> float:
        return _to_fps(self.rms)

    @property
    def fastest_fps(self) -> float:
        """Frame rate of the shortest frame."""
        return _to_fps(self.minimum)

    @property
    def slowest_fps(self) -> float:
        """Frame rate of the longest frame."""
        return _to_fps(self.maximum)

    @property
    def p10_fps(self) -> float:
        return _to_fps(self.p10)

    @property
    def p90_fps(self) -> float:
        return _to_fps(self.p90)


@dataclass(frozen=True)
class Report:
    """Immutable result of analysing one session."""

    summary: ReportSummary
    buckets: tuple[ThresholdBucket, ...]
    extra_info: str
    environment_text: str
    events: tuple[CustomEvent, ...]
    frames: tuple[FrameSample, ...]
    timing_sig_figs: int = 4
    percent_sig_figs: int = 3

    @property
    def total_frames(self) -> int:
        return self.summary.frame_count

    def _timing(self, value: float) -> str:
        return format_number(round_to_sig_figs(value, self.timing_sig_figs))

    def _percent(self, value: float) -> str:
        return format_number(round_to_sig_figs(value, self.percent_sig_figs))

    def _bucket_line(self, bucket: ThresholdBucket) -> str:
        plural = "" if bucket.frame_count == 1 else "s"
        return (
            f"FPS < {format_number(bucket.cutoff_fps)}: "
            f"{bucket.frame_count} frame{plural} ({self._percent(bucket.frame_percent)}%), "
            f"{self._timing(bucket.total_seconds)}s ({self._percent(bucket.duration_percent)}%)"
        )

    def render(self) -> str:
        """Render the full report text."""
        s = self.summary
        parts = [
            self.extra_info,
            f"\n\n\nLog duration: {format_number(s.duration)}s",
            f"\nTotal frames: {s.frame_count}",
            f"\n\nAverage frametime: {self._timing(s.mean)}ms, {self._timing(s.mean_fps)} FPS",
            f"\nRMS frametime: {self._timing(s.rms)}ms, {self._timing(s.rms_fps)} FPS",
            f"\nMinimum frametime: {self._timing(s.minimum)}ms, {self._timing(s.fastest_fps)} FPS",
            f"\nMaximum frametime: {self._timing(s.maximum)}ms, {self._timing(s.slowest_fps)} FPS",
            f"\np10%: {self._timing(s.p10)}ms, {self._timing(s.p10_fps)} FPS",
            f"\np90%: {self._timing(s.p90)}ms, {self._timing(s.p90_fps)} FPS",
            "\n",
        ]
        parts.extend(f"\n{self._bucket_line(bucket)}" for bucket in self.buckets)
        parts.append(f"\n\n\n{self.environment_text}")

        if self.events:
            parts.append("\n\n\n\nCustom events:")
            parts.extend(
                f"\n{format_number(event.timestamp)}, {event.label}"
                for event in self.events
            )

        parts.append("\n\n\nFrametimes:")
        parts.extend(
            f"\n{format_number(frame.elapsed)}, {format_number(frame.duration_ms)}"
            for frame in self.frames
        )
        return "".join(parts)

    def to_bytes(self) -> bytes:
        """Serialized report, ready for a persistence sink."""
        return self.render().encode("utf-8")


class ReportEngine:
    """Computes statistics over a SampleStore and builds reports."""

    def __init__(
        self,
        thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
        timing_sig_figs: int = 4,
        percent_sig_figs: int = 3,
    ) -> None:
        """Initialize the engine.

        Args:
            thresholds: FPS cutoffs for bucket analysis, in report order
            timing_sig_figs: Significant figures for times and rates
            percent_sig_figs: Significant figures for percentages
        """
        self.thresholds = tuple(float(t) for t in thresholds)
        self.timing_sig_figs = timing_sig_figs
        self.percent_sig_figs = percent_sig_figs

    def compute_summary(self, store: SampleStore) -> ReportSummary:
        """Compute summary statistics.

        Raises:
            EmptySessionError: If the store holds no frames
        """
        if store.is_empty():
            raise EmptySessionError()

        durations = store.durations()
        count = len(durations)
        ordered = sorted(durations)

        return ReportSummary(
            duration=store.last_elapsed(),
            frame_count=count,
            mean=sum(durations) / count,
            rms=math.sqrt(sum(d * d for d in durations) / count),
            minimum=ordered[0],
            maximum=ordered[-1],
            p10=nearest_rank(ordered, 0.1),
            p90=nearest_rank(ordered, 0.9),
        )

    def analyse_threshold(
        self, store: SampleStore, cutoff_fps: float, duration: float
    ) -> ThresholdBucket:
        """Count frames slower than an FPS cutoff.

        Args:
            store: Frames to analyse (must be non-empty)
            cutoff_fps: Frames with 1000/duration below this are counted
            duration: Log duration in seconds

        Returns:
            ThresholdBucket for the cutoff
        """
        slow = [d for d in store.durations() if _to_fps(d) < cutoff_fps]
        total_ms = sum(slow)

        return ThresholdBucket(
            cutoff_fps=float(cutoff_fps),
            frame_count=len(slow),
            frame_percent=100 * len(slow) / store.count(),
            total_seconds=total_ms / 1000,
            duration_percent=_divide(0.1 * total_ms, duration),
        )

    def build(
        self,
        store: SampleStore,
        extra_info: str = "",
        environment_text: str = "",
    ) -> Report:
        """Analyse a finished store and build its report.

        Args:
            store: Frozen sample store
            extra_info: Text placed at the top of the report
            environment_text: Pre-formatted host description, embedded verbatim

        Returns:
            Immutable Report

        Raises:
            EmptySessionError: If the store holds no frames
        """
        summary = self.compute_summary(store)
        buckets = tuple(
            self.analyse_threshold(store, cutoff, summary.duration)
            for cutoff in self.thresholds
        )
        logger.debug(
            f"Analysed {summary.frame_count} frames over {summary.duration:.3f}s "
            f"({len(store.events)} custom events)"
        )
        return Report(
            summary=summary,
            buckets=buckets,
            extra_info=extra_info or "",
            environment_text=environment_text or "",
            events=store.events,
            frames=store.frames,
            timing_sig_figs=self.timing_sig_figs,
            percent_sig_figs=self.percent_sig_figs,
        )

    def serialize(
        self,
        store: SampleStore,
        extra_info: str = "",
        environment_text: str = "",
    ) -> bytes:
        """Build a report and return its serialized bytes."""
        return self.build(store, extra_info, environment_text).to_bytes()
