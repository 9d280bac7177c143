"""Logging setup and timing spans.

perflog logs through loguru. configure_logging() replaces loguru's default
sink; log_span() wraps an operation and logs its duration on exit.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger

__all__ = ["LogSpan", "configure_logging", "log_span"]


def configure_logging(level: str = "INFO", log_file: Path | str | None = None) -> None:
    """Route loguru output to stderr (and optionally a file).

    Args:
        level: Minimum level to emit
        log_file: Optional file that receives the same records
    """
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file is not None:
        logger.add(Path(log_file), level=level, enqueue=True)


class LogSpan:
    """A structured logging span with timing and attributes."""

    def __init__(self, name: str, **attrs: Any) -> None:
        """Initialize a log span.

        Args:
            name: Span name (e.g., "perflog.dump")
            **attrs: Initial attributes to log
        """
        self.name = name
        self.attrs: dict[str, Any] = dict(attrs)
        self.start_time = time.perf_counter()
        self.error: str | None = None

    def add(self, key: str | None = None, value: Any = None, **attrs: Any) -> LogSpan:
        """Add attributes to the span.

        Args:
            key: Attribute name (optional if using kwargs)
            value: Attribute value (required if key is provided)
            **attrs: Bulk attribute additions

        Returns:
            Self for method chaining
        """
        if key is not None:
            self.attrs[key] = value
        self.attrs.update(attrs)
        return self

    def _emit(self) -> None:
        elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        bound = logger.bind(span=self.name, elapsed_ms=round(elapsed_ms, 2), **self.attrs)
        details = " ".join(f"{k}={v}" for k, v in self.attrs.items())
        if self.error:
            bound.error(f"{self.name} failed after {elapsed_ms:.2f}ms {details}: {self.error}")
        else:
            bound.debug(f"{self.name} took {elapsed_ms:.2f}ms {details}".rstrip())


@contextmanager
def log_span(name: str, **attrs: Any) -> Generator[LogSpan, None, None]:
    """Context manager that times a block and logs it on exit.

    Example:
        >>> with log_span("perflog.dump", path="out.txt") as span:
        ...     result = write_report(report, "out.txt")
        ...     span.add(bytes=result.size_bytes)
    """
    span = LogSpan(name, **attrs)
    try:
        yield span
    except Exception as e:
        span.error = f"{type(e).__name__}: {e}"
        raise
    finally:
        span._emit()
