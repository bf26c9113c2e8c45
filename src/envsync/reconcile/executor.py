"""Fan candidate files out to a pool of worker threads."""

from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

from envsync.errors import EnvSyncError
from envsync.store import StoreError

from .engine import ReconciliationEngine
from .models import RunCounters, RunReport, SyncOutcome

logger = logging.getLogger(__name__)

_STOP = object()

OutcomeCallback = Callable[[SyncOutcome], None]


class SyncExecutor:
    """Run the reconciliation engine over many files concurrently.

    Workers pull paths from one shared queue and push outcomes to one results
    queue. The calling thread is the only consumer of the results queue, so
    ``on_outcome`` callbacks never interleave and arrive in completion order.
    """

    def __init__(
        self,
        engine: ReconciliationEngine,
        *,
        workers: int = 10,
        store_error_alert_threshold: int = 3,
    ) -> None:
        self.engine = engine
        self.workers = workers
        self.store_error_alert_threshold = store_error_alert_threshold

    def run(
        self,
        candidates: Iterable[Path | str],
        base_path: Path,
        *,
        dry_run: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
        force_upload: bool = False,
    ) -> RunReport:
        """Reconcile every candidate and aggregate the outcomes.

        Args:
            candidates: Paths to reconcile.
            base_path: Directory used for files outside a git working copy.
            dry_run: Plan actions without performing them.
            on_outcome: Called on the calling thread for each finished file.
            force_upload: Push every file regardless of the remote state.

        Returns:
            RunReport: Counters and outcomes; per-file failures are recorded,
            never raised.

        Raises:
            Exception: Whatever ``on_outcome`` raises. Files not yet started
                are skipped, and every worker has exited before it propagates.
        """
        paths = [Path(candidate) for candidate in candidates]
        counters = RunCounters()
        if not paths:
            return RunReport(counters=counters.snapshot(), dry_run=dry_run)

        worker_count = max(1, min(self.workers, len(paths)))
        jobs: "queue.Queue[object]" = queue.Queue()
        results: "queue.Queue[Tuple[SyncOutcome, bool]]" = queue.Queue()
        for path in paths:
            jobs.put(path)
        for _ in range(worker_count):
            jobs.put(_STOP)

        cancelled = threading.Event()
        started = time.perf_counter()
        threads = [
            threading.Thread(
                target=self._work,
                args=(jobs, results, counters, cancelled, base_path, dry_run, force_upload),
                name=f"envsync-worker-{index}",
                daemon=True,
            )
            for index in range(worker_count)
        ]
        for thread in threads:
            thread.start()

        outcomes = []
        store_errors = 0
        try:
            for _ in range(len(paths)):
                outcome, is_store_error = results.get()
                outcomes.append(outcome)
                store_errors += int(is_store_error)
                if on_outcome is not None:
                    on_outcome(outcome)
        except BaseException:
            logger.warning("Outcome callback failed; skipping files not yet started")
            cancelled.set()
            raise
        finally:
            for thread in threads:
                thread.join()
        elapsed = time.perf_counter() - started

        backend_suspect = store_errors >= self.store_error_alert_threshold
        if backend_suspect:
            logger.warning(
                "%d files failed with store errors; the database backend may be unavailable",
                store_errors,
            )

        return RunReport(
            counters=counters.snapshot(),
            outcomes=outcomes,
            workers=worker_count,
            dry_run=dry_run,
            elapsed_seconds=elapsed,
            store_errors=store_errors,
            backend_suspect=backend_suspect,
        )

    def _work(
        self,
        jobs: "queue.Queue[object]",
        results: "queue.Queue[Tuple[SyncOutcome, bool]]",
        counters: RunCounters,
        cancelled: threading.Event,
        base_path: Path,
        dry_run: bool,
        force_upload: bool,
    ) -> None:
        while True:
            item = jobs.get()
            if item is _STOP:
                return
            if cancelled.is_set():
                continue
            path = item if isinstance(item, Path) else Path(str(item))
            try:
                outcome = self.engine.reconcile(
                    path, base_path, dry_run=dry_run, force_upload=force_upload
                )
                is_store_error = False
            except EnvSyncError as exc:
                logger.info("Failed to sync %s: %s", path, exc)
                outcome = _failure(path, exc, dry_run)
                is_store_error = isinstance(exc, StoreError)
            except Exception as exc:  # pragma: no cover - unexpected failure
                logger.exception("Unexpected error while syncing %s", path)
                outcome = _failure(path, exc, dry_run)
                is_store_error = False
            counters.record(outcome)
            results.put((outcome, is_store_error))


def _failure(path: Path, exc: BaseException, dry_run: bool) -> SyncOutcome:
    return SyncOutcome(
        path=path,
        action=None,
        message=f"✗ Error syncing {path}: {exc}",
        error=str(exc),
        error_kind=type(exc).__name__,
        dry_run=dry_run,
    )


__all__ = ["OutcomeCallback", "SyncExecutor"]
