"""Append-only storage for frame samples and custom events.

Samples are kept in insertion order. Two samples recorded with the same
elapsed time are both retained.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

__all__ = ["CustomEvent", "FrameSample", "SampleStore"]


@dataclass(frozen=True)
class FrameSample:
    """One frame observation.

    Attributes:
        elapsed: Seconds since session start when the frame was captured
        duration_ms: Wall-clock duration of the frame in milliseconds
    """

    elapsed: float
    duration_ms: float


@dataclass(frozen=True)
class CustomEvent:
    """A labelled moment during a session."""

    timestamp: float
    label: str


@dataclass
class SampleStore:
    """Growing collection of frame samples and custom events.

    Pure data container: no analysis happens here. Values are not
    validated; zero or negative durations are accepted as-is.
    """

    _frames: list[FrameSample] = field(default_factory=list)
    _events: list[CustomEvent] = field(default_factory=list)

    def record_frame(self, elapsed: float, duration_ms: float) -> None:
        """Append a frame sample."""
        self._frames.append(FrameSample(float(elapsed), float(duration_ms)))

    def record_event(self, timestamp: float, label: str) -> None:
        """Append a custom event."""
        self._events.append(CustomEvent(float(timestamp), str(label)))

    def count(self) -> int:
        """Number of frame samples recorded."""
        return len(self._frames)

    def is_empty(self) -> bool:
        return not self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[FrameSample]:
        return iter(tuple(self._frames))

    @property
    def frames(self) -> tuple[FrameSample, ...]:
        """Frame samples in insertion order."""
        return tuple(self._frames)

    @property
    def events(self) -> tuple[CustomEvent, ...]:
        """Custom events in insertion order."""
        return tuple(self._events)

    def durations(self) -> tuple[float, ...]:
        """Frame durations (ms) in insertion order."""
        return tuple(frame.duration_ms for frame in self._frames)

    def last_elapsed(self) -> float:
        """Elapsed time of the most recently inserted sample.

        Insertion order is assumed to be time order, which holds when
        samples come from a monotonic clock.

        Raises:
            IndexError: If no frames have been recorded
        """
        return self._frames[-1].elapsed
