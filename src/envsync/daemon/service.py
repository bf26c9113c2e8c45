"""Background scheduler that repeats sync runs on an interval."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from envsync.config.models import DaemonSettings
from envsync.reconcile import RunReport, SyncService

logger = logging.getLogger(__name__)


class SyncDaemon:
    """Run an initial sync, then one per interval until stopped.

    When ``watch_files`` is enabled, changes to candidate files schedule an
    earlier run once the debounce window passes without further events. Runs
    that fail before dispatch are retried with exponential backoff.
    """

    def __init__(
        self,
        service: SyncService,
        settings: DaemonSettings,
        *,
        dry_run: bool = False,
        on_report: Optional[Callable[[RunReport], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the daemon.

        Args:
            service: Service performing each run.
            settings: Interval, watch and backoff settings.
            dry_run: Whether runs only plan their actions.
            on_report: Called with the report of every completed run.
            on_error: Called with the exception of every failed run.
            clock: Monotonic time source.
        """
        self._service = service
        self._settings = settings
        self._dry_run = dry_run
        self._on_report = on_report
        self._on_error = on_error
        self._clock = clock
        self._stop_event = threading.Event()
        self._wake = threading.Event()
        self._dirty_lock = threading.Lock()
        self._dirty_at: Optional[float] = None
        self._observer: Optional[Observer] = None
        self._initial_backoff = settings.error_backoff_seconds
        self._max_backoff = max(self._initial_backoff, settings.max_error_backoff_seconds)
        self._backoff = self._initial_backoff
        self.runs = 0
        self.failures = 0

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run_once(self) -> Optional[RunReport]:
        """Execute one sync run.

        Returns:
            Optional[RunReport]: The report, or ``None`` when the run failed
            before dispatch.
        """
        self.runs += 1
        try:
            report = self._service.run(dry_run=self._dry_run)
        except Exception as exc:
            self.failures += 1
            logger.error("Sync run failed: %s", exc)
            if self._on_error is not None:
                self._on_error(exc)
            return None
        if self._on_report is not None:
            self._on_report(report)
        return report

    def run_forever(self) -> None:
        """Block, running syncs until :meth:`stop` is called."""
        if self._settings.watch_files:
            self._start_observer()
        try:
            self._run_loop()
        finally:
            self._stop_observer()

    def stop(self) -> None:
        """Ask the loop to exit after any in-flight run. Safe from signal handlers."""
        self._stop_event.set()
        self._wake.set()

    def notify_change(self, path: Optional[Path] = None) -> None:
        """Schedule a debounced run because a candidate changed."""
        with self._dirty_lock:
            self._dirty_at = self._clock()
        if path is not None:
            logger.debug("Change detected in %s", path)
        self._wake.set()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _run_loop(self) -> None:
        next_run = self._clock()
        while not self._stop_event.is_set():
            deadline = next_run
            with self._dirty_lock:
                dirty_at = self._dirty_at
            if dirty_at is not None and self._backoff == self._initial_backoff:
                deadline = min(deadline, dirty_at + self._settings.debounce_seconds)

            timeout = deadline - self._clock()
            if timeout > 0:
                self._wake.wait(timeout)
                self._wake.clear()
                continue

            with self._dirty_lock:
                self._dirty_at = None
            report = self.run_once()
            if report is None:
                delay = self._backoff
                self._backoff = min(self._backoff * 2, self._max_backoff)
                logger.warning("Retrying in %.1fs", delay)
            else:
                delay = self._settings.interval_seconds
                self._backoff = self._initial_backoff
            next_run = self._clock() + delay

    def _start_observer(self) -> None:
        paths = [path.expanduser().resolve() for path in self._service.candidate_store.paths()]
        directories = sorted({path.parent for path in paths if path.parent.is_dir()})
        if not directories:
            logger.info("No candidate directories to watch")
            return
        observer = Observer()
        handler = _CandidateEventHandler(paths, self.notify_change)
        for directory in directories:
            observer.schedule(handler, str(directory), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("Watching %d director(ies) for changes", len(directories))

    def _stop_observer(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None


class _CandidateEventHandler(FileSystemEventHandler):
    """Forward events touching candidate files to the daemon."""

    def __init__(self, candidates: Iterable[Path], callback: Callable[[Path], None]) -> None:
        self._candidates = frozenset(candidates)
        self._callback = callback

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:  # pragma: no cover - watchdog-specific
        self._dispatch(getattr(event, "dest_path", event.src_path))

    def _dispatch(self, raw_path: str | bytes) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path).expanduser().resolve()
        if path in self._candidates:
            self._callback(path)


__all__ = ["SyncDaemon"]
