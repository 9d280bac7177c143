"""Read serialized reports back into samples and events.

Only the machine-readable parts of a report are parsed: the frame count
line, the custom events section and the raw frame times. The summary is
recomputed from the raw data rather than parsed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from perflog.errors import ReportParseError
from perflog.store import CustomEvent, FrameSample, SampleStore

__all__ = ["ParsedReport", "load_store", "parse_report", "read_report"]

_TOTAL_FRAMES_RE = re.compile(r"^Total frames: (\d+)$", re.MULTILINE)
_FRAMETIMES_HEADER = "\nFrametimes:"
_EVENTS_HEADER = "\nCustom events:"


@dataclass(frozen=True)
class ParsedReport:
    """Raw data recovered from a report."""

    total_frames: int | None
    frames: tuple[FrameSample, ...]
    events: tuple[CustomEvent, ...]


def _parse_float(text: str, line_no: int) -> float:
    try:
        return float(text)
    except ValueError as e:
        raise ReportParseError(f"Line {line_no}: not a number: {text!r}") from e


def _float_or_none(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def _section_lines(text: str, start: int) -> list[tuple[int, str]]:
    """Lines following a header up to the first blank line, with line numbers."""
    first_line = text.count("\n", 0, start) + 2
    body = text[start:].split("\n")[1:]
    lines: list[tuple[int, str]] = []
    for offset, line in enumerate(body):
        if not line.strip():
            break
        lines.append((first_line + offset, line))
    return lines


def _parse_events(text: str, start: int, end: int) -> list[CustomEvent]:
    """Parse the events section between its header and the frame times.

    Labels are written verbatim, so a label may span several lines. A line
    that does not start with ``<number>, `` continues the previous label;
    a continuation line that itself looks like ``<number>, ...`` is read
    as a new event.
    """
    first_line = text.count("\n", 0, start) + 2
    body = text[start:end].split("\n")[1:]
    # Two blank lines separate the section from the frame times
    body = body[:-2] if body[-2:] == ["", ""] else body

    events: list[CustomEvent] = []
    for offset, line in enumerate(body):
        line_no = first_line + offset
        timestamp, sep, label = line.partition(", ")
        value = _float_or_none(timestamp) if sep else None
        if value is not None:
            events.append(CustomEvent(value, label))
            continue
        if not events:
            raise ReportParseError(f"Line {line_no}: expected '<timestamp>, <label>'")
        previous = events[-1]
        events[-1] = CustomEvent(previous.timestamp, f"{previous.label}\n{line}")
    return events


def parse_report(text: str) -> ParsedReport:
    """Parse report text.

    Args:
        text: Full report text as produced by Report.render()

    Returns:
        ParsedReport with the frame count line, frames and events

    Raises:
        ReportParseError: If the frame times section is missing or malformed
    """
    text = text.replace("\r\n", "\n")

    frames_at = text.rfind(_FRAMETIMES_HEADER)
    if frames_at < 0:
        raise ReportParseError("No 'Frametimes:' section found")

    frames: list[FrameSample] = []
    for line_no, line in _section_lines(text, frames_at + 1):
        elapsed, sep, duration = line.partition(",")
        if not sep:
            raise ReportParseError(f"Line {line_no}: expected '<elapsed>, <duration>'")
        frames.append(
            FrameSample(
                _parse_float(elapsed.strip(), line_no),
                _parse_float(duration.strip(), line_no),
            )
        )

    events: list[CustomEvent] = []
    events_at = text.rfind(_EVENTS_HEADER, 0, frames_at)
    if events_at >= 0:
        events = _parse_events(text, events_at + 1, frames_at)

    match = _TOTAL_FRAMES_RE.search(text, 0, frames_at)
    total_frames = int(match.group(1)) if match else None

    return ParsedReport(total_frames=total_frames, frames=tuple(frames), events=tuple(events))


def read_report(path: Path | str) -> ParsedReport:
    """Read and parse a report file.

    Raises:
        ReportParseError: If the file cannot be read or parsed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ReportParseError(f"Cannot read {path}: {e}") from e
    return parse_report(text)


def load_store(parsed: ParsedReport) -> SampleStore:
    """Rebuild a SampleStore from parsed report data."""
    store = SampleStore()
    for frame in parsed.frames:
        store.record_frame(frame.elapsed, frame.duration_ms)
    for event in parsed.events:
        store.record_event(event.timestamp, event.label)
    return store
