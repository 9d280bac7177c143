"""Session lifecycle and the host-facing logger controller.

A PerformanceLogger owns at most one live Session. The host feeds it a frame
every tick and custom events on demand, then ends the session either
synchronously or on a background worker.

Lifecycle of a session (one-way):

    LOGGING -> DUMPING -> IDLE

Ending a session freezes it: the SampleStore is moved out of the Session and
handed to the report engine. The session keeps no reference to it, so a
background dump never shares data with a newly started session.

Example:
    >>> perf = PerformanceLogger()
    >>> perf.start_session()
    >>> for _ in range(600):
    ...     render_frame()
    ...     perf.tick()
    >>> perf.log_event("boss spawned")
    >>> handle = perf.end_session_async("logs/run.txt", on_complete=print)
    >>> while not handle.done():
    ...     perf.poll()
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from perflog.environment import describe_system
from perflog.errors import EmptySessionError, NoActiveSessionError
from perflog.logging import log_span
from perflog.paths import default_report_path
from perflog.report import Report, ReportEngine
from perflog.sink import DumpResult, FileSink, ReportSink, write_report
from perflog.store import SampleStore

if TYPE_CHECKING:
    from perflog.config.loader import PerfLogConfig

__all__ = [
    "Clock",
    "DumpHandle",
    "MonotonicClock",
    "PerformanceLogger",
    "Session",
    "SessionState",
]

CompletionCallback = Callable[[DumpResult], None]


class SessionState(Enum):
    """The possible states of a session or of the logger."""

    IDLE = "idle"
    LOGGING = "logging"
    DUMPING = "dumping"


class Clock(Protocol):
    """Monotonic time source in seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Clock backed by time.perf_counter()."""

    def now(self) -> float:
        return time.perf_counter()


class Session:
    """One logging interval, from start to dump.

    Owns the SampleStore until freeze() hands it off.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self.start_time = clock.now()
        self._last_tick = self.start_time
        self._store: SampleStore | None = SampleStore()
        self.state = SessionState.LOGGING

    @property
    def is_active(self) -> bool:
        """True while the session accepts samples."""
        return self._store is not None

    @property
    def frame_count(self) -> int:
        return self._store.count() if self._store is not None else 0

    def elapsed(self) -> float:
        """Seconds since the session started."""
        return self._clock.now() - self.start_time

    def _require_store(self, operation: str) -> SampleStore:
        if self._store is None:
            raise NoActiveSessionError(operation)
        return self._store

    def record_frame(self, elapsed: float, duration_ms: float) -> None:
        """Record a frame sample.

        Raises:
            NoActiveSessionError: If the session was already frozen
        """
        self._require_store("record_frame").record_frame(elapsed, duration_ms)

    def record_event(self, timestamp: float, label: str) -> None:
        """Record a custom event at an explicit timestamp.

        Raises:
            NoActiveSessionError: If the session was already frozen
        """
        self._require_store("record_event").record_event(timestamp, label)

    def log_event(self, label: str) -> None:
        """Record a custom event stamped with the session clock."""
        self.record_event(self.elapsed(), label)

    def tick(self) -> None:
        """Record the frame that ended now.

        Elapsed time is measured from the session start, the frame duration
        from the previous tick (or the session start for the first tick).
        """
        store = self._require_store("tick")
        now = self._clock.now()
        store.record_frame(now - self.start_time, (now - self._last_tick) * 1000)
        self._last_tick = now

    def freeze(self) -> SampleStore:
        """Stop ingestion and hand over the store.

        Returns:
            The session's SampleStore; the session no longer references it

        Raises:
            NoActiveSessionError: If the session was already frozen
        """
        store = self._require_store("freeze")
        self._store = None
        self.state = SessionState.DUMPING
        return store

    def finish(self) -> None:
        """Mark the session as fully dumped."""
        self._store = None
        self.state = SessionState.IDLE


class DumpHandle:
    """Single-shot completion handle for a report dump.

    The handle settles once the dump has finished and its completion
    callback (if any) has been queued for poll().
    """

    def __init__(self, future: Future[DumpResult], session: Session, path: Path) -> None:
        self._future = future
        self._settled = threading.Event()
        self.session = session
        self.path = path

    @classmethod
    def completed(cls, result: DumpResult, session: Session) -> DumpHandle:
        """Wrap an already finished synchronous dump."""
        future: Future[DumpResult] = Future()
        future.set_result(result)
        handle = cls(future, session, result.path)
        handle._settle()
        return handle

    def _settle(self) -> None:
        self._settled.set()

    def done(self) -> bool:
        return self._settled.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the dump to settle. Returns True if it did."""
        return self._settled.wait(timeout)

    def result(self, timeout: float | None = None) -> DumpResult:
        """Wait for the dump and return its result.

        Raises:
            TimeoutError: If the dump does not finish within timeout
            PerfLogError: Whatever error the dump raised
        """
        if not self.wait(timeout):
            raise TimeoutError(f"Dump to {self.path} did not finish in {timeout}s")
        return self._future.result(timeout=0)


class PerformanceLogger:
    """Owns the live session and turns finished sessions into reports.

    Completion callbacks of asynchronous dumps are queued and run on the
    thread that calls poll() (tick() polls too), never on the worker.
    """

    def __init__(
        self,
        engine: ReportEngine | None = None,
        sink: ReportSink | None = None,
        clock: Clock | None = None,
        environment: Callable[[], str] | None = describe_system,
        config: PerfLogConfig | None = None,
    ) -> None:
        """Initialize the logger.

        Args:
            engine: Report engine (default: from config, else defaults)
            sink: Where reports are written (default: FileSink)
            clock: Time source (default: MonotonicClock)
            environment: Provider of the host description used when a
                dump is not given environment text; None disables it
            config: Loaded configuration; controls engine settings,
                default report paths and whether host specs are included
        """
        self.config = config
        if engine is None:
            engine = config.report.create_engine() if config is not None else ReportEngine()
        self.engine = engine
        self.sink: ReportSink = sink or FileSink()
        self.clock: Clock = clock or MonotonicClock()
        if config is not None and not config.include_system_specs:
            environment = None
        self._environment = environment

        self._session: Session | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._pending: set[DumpHandle] = set()
        self._lock = threading.Lock()
        self._completions: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()

    @classmethod
    def from_config(cls, config: PerfLogConfig, **kwargs: object) -> PerformanceLogger:
        """Create a logger from a loaded configuration."""
        return cls(config=config, **kwargs)  # type: ignore[arg-type]

    # ---------------- State -----------------

    @property
    def current_session(self) -> Session | None:
        """The live session, if any."""
        if self._session is not None and self._session.is_active:
            return self._session
        return None

    @property
    def is_logging(self) -> bool:
        return self.current_session is not None

    @property
    def state(self) -> SessionState:
        """LOGGING while a session is live, DUMPING while dumps run, else IDLE."""
        if self.is_logging:
            return SessionState.LOGGING
        with self._lock:
            if self._pending:
                return SessionState.DUMPING
        return SessionState.IDLE

    # ---------------- Ingestion -----------------

    def start_session(self) -> Session:
        """Begin logging. A session that is still live is discarded."""
        previous = self.current_session
        if previous is not None:
            logger.warning(
                f"Discarding running session with {previous.frame_count} frames"
            )
            previous.freeze()
            previous.finish()

        self._session = Session(self.clock)
        logger.debug("Performance logging started")
        return self._session

    def _require_session(self, operation: str) -> Session:
        session = self.current_session
        if session is None:
            logger.error(f"No logger was running ({operation})")
            raise NoActiveSessionError(operation)
        return session

    def record_frame(self, elapsed: float, duration_ms: float) -> None:
        """Record a frame sample on the live session.

        Raises:
            NoActiveSessionError: If no session is live (nothing is recorded)
        """
        self._require_session("record_frame").record_frame(elapsed, duration_ms)

    def record_event(self, timestamp: float, label: str) -> None:
        """Record a custom event at an explicit timestamp.

        Raises:
            NoActiveSessionError: If no session is live (nothing is recorded)
        """
        self._require_session("record_event").record_event(timestamp, label)

    def log_event(self, label: str) -> None:
        """Record a custom event stamped with the session clock.

        Raises:
            NoActiveSessionError: If no session is live (nothing is recorded)
        """
        self._require_session("log_event").log_event(label)

    def tick(self) -> None:
        """Per-frame host hook: record a frame if logging, then poll()."""
        session = self.current_session
        if session is not None:
            session.tick()
        self.poll()

    # ---------------- Ending -----------------

    def _detach(self, operation: str) -> tuple[Session, SampleStore]:
        session = self._require_session(operation)
        store = session.freeze()
        self._session = None
        return session, store

    def _environment_text(self, environment_text: str | None) -> str:
        if environment_text is not None:
            return environment_text
        if self._environment is None:
            return ""
        return self._environment()

    def _resolve_path(self, path: Path | str | None) -> Path:
        if path is not None:
            return Path(path)
        if self.config is None:
            raise ValueError("A report path is required when no config is loaded")
        return default_report_path(self.config)

    def _dump(
        self, store: SampleStore, path: Path, extra_info: str, environment_text: str
    ) -> DumpResult:
        with log_span("perflog.dump", path=str(path), frames=store.count()) as span:
            report = self.engine.build(store, extra_info, environment_text)
            result = write_report(report, path, self.sink)
            span.add(size_bytes=result.size_bytes)
        return result

    def end_session(
        self, extra_info: str = "", environment_text: str | None = None
    ) -> Report:
        """End the live session and build its report synchronously.

        Args:
            extra_info: Text placed at the top of the report
            environment_text: Host description; None uses the provider

        Returns:
            The finished Report (nothing is written)

        Raises:
            NoActiveSessionError: If no session is live
            EmptySessionError: If the session recorded no frames
        """
        session, store = self._detach("end_session")
        try:
            return self.engine.build(store, extra_info, self._environment_text(environment_text))
        finally:
            session.finish()

    def end_session_to(
        self,
        path: Path | str | None = None,
        extra_info: str = "",
        environment_text: str | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> DumpResult:
        """End the live session, build and write its report on this thread.

        Args:
            path: Report destination (default: from config)
            extra_info: Text placed at the top of the report
            environment_text: Host description; None uses the provider
            on_complete: Called once with the result after the write

        Raises:
            NoActiveSessionError: If no session is live
            EmptySessionError: If the session recorded no frames
            ReportWriteError: If the sink failed
        """
        target = self._resolve_path(path)
        session, store = self._detach("end_session")
        try:
            result = self._dump(store, target, extra_info, self._environment_text(environment_text))
        finally:
            session.finish()

        if on_complete is not None:
            on_complete(result)
        return result

    def end_session_async(
        self,
        path: Path | str | None = None,
        extra_info: str = "",
        environment_text: str | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> DumpHandle:
        """End the live session and dump it on a background worker.

        The session is frozen and the environment text captured on this
        thread before the worker starts. The dump runs to completion; it
        cannot be cancelled. on_complete runs exactly once, on the next
        poll() after both the report and the write have finished. A failed
        dump is logged, skips on_complete and re-raises from
        DumpHandle.result().

        Args:
            path: Report destination (default: from config)
            extra_info: Text placed at the top of the report
            environment_text: Host description; None uses the provider
            on_complete: Called once with the DumpResult

        Returns:
            DumpHandle for the in-flight dump

        Raises:
            NoActiveSessionError: If no session is live
            EmptySessionError: If the session recorded no frames
        """
        target = self._resolve_path(path)
        session, store = self._detach("end_session")
        if store.is_empty():
            session.finish()
            raise EmptySessionError()
        environment = self._environment_text(environment_text)

        future = self._get_executor().submit(self._dump, store, target, extra_info, environment)
        handle = DumpHandle(future, session, target)
        with self._lock:
            self._pending.add(handle)
        future.add_done_callback(partial(self._on_dump_done, handle, on_complete))
        logger.debug(f"Dumping {store.count()} frames to {target} in background")
        return handle

    def dump(
        self,
        path: Path | str | None = None,
        extra_info: str = "",
        async_dump: bool | None = None,
        on_complete: CompletionCallback | None = None,
        environment_text: str | None = None,
    ) -> DumpHandle:
        """End the live session and write its report.

        Chooses between end_session_async() and end_session_to().

        Args:
            path: Report destination (default: from config)
            extra_info: Text placed at the top of the report
            async_dump: Run on a background worker (default: config
                async_dump, else True)
            on_complete: Called once with the DumpResult
            environment_text: Host description; None uses the provider

        Returns:
            DumpHandle (already done for synchronous dumps)

        Raises:
            NoActiveSessionError: If no session is live
            EmptySessionError: If the session recorded no frames
        """
        if async_dump is None:
            async_dump = self.config.async_dump if self.config is not None else True

        if async_dump:
            return self.end_session_async(path, extra_info, environment_text, on_complete)

        session = self._require_session("end_session")
        result = self.end_session_to(path, extra_info, environment_text, on_complete)
        return DumpHandle.completed(result, session)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="perflog-dump")
        return self._executor

    def _on_dump_done(
        self,
        handle: DumpHandle,
        on_complete: CompletionCallback | None,
        future: Future[DumpResult],
    ) -> None:
        """Runs on the worker thread when a dump finishes."""
        try:
            handle.session.finish()
            error = future.exception()
            if error is not None:
                logger.error(f"Background dump to {handle.path} failed: {error}")
            elif on_complete is not None:
                self._completions.put(partial(on_complete, future.result()))
        finally:
            with self._lock:
                self._pending.discard(handle)
            handle._settle()

    def poll(self) -> int:
        """Run queued completion callbacks on the calling thread.

        Returns:
            Number of callbacks that ran
        """
        ran = 0
        while True:
            try:
                callback = self._completions.get_nowait()
            except queue.Empty:
                return ran
            callback()
            ran += 1

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker.

        Args:
            wait: Wait for in-flight dumps and deliver their callbacks
        """
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        if wait:
            self.poll()

    def __enter__(self) -> PerformanceLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)
