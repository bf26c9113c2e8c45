"""Daemon scheduling tests."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

from envsync.config.models import DaemonSettings
from envsync.daemon import SyncDaemon
from envsync.reconcile import RunReport
from envsync.state import CandidateStore
from envsync.store import StoreError


class _FakeService:
    """Stand-in for ``SyncService`` recording each run."""

    def __init__(self, candidate_store: CandidateStore, failures: int = 0) -> None:
        self.candidate_store = candidate_store
        self.calls: list[dict[str, Any]] = []
        self.failures = failures

    def run(self, **kwargs: Any) -> RunReport:
        self.calls.append(kwargs)
        if len(self.calls) <= self.failures:
            raise StoreError("database unreachable")
        return RunReport(counters={"uploaded": 0, "downloaded": 0, "skipped": 1, "conflicted": 0, "errors": 0})


def _start(daemon: SyncDaemon) -> threading.Thread:
    thread = threading.Thread(target=daemon.run_forever, daemon=True)
    thread.start()
    return thread


def _wait_for(predicate: Any, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_runs_repeat_on_interval_until_stopped(tmp_path: Path) -> None:
    service = _FakeService(CandidateStore(tmp_path / "files.json"))
    reports: list[RunReport] = []
    daemon = SyncDaemon(
        service,  # type: ignore[arg-type]
        DaemonSettings(interval_seconds=0.05),
        dry_run=True,
        on_report=reports.append,
    )
    thread = _start(daemon)

    assert _wait_for(lambda: len(reports) >= 3)
    daemon.stop()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert daemon.stopped
    assert all(call == {"dry_run": True} for call in service.calls)


def test_failed_runs_back_off_then_recover(tmp_path: Path) -> None:
    service = _FakeService(CandidateStore(tmp_path / "files.json"), failures=2)
    errors: list[Exception] = []
    reports: list[RunReport] = []
    daemon = SyncDaemon(
        service,  # type: ignore[arg-type]
        DaemonSettings(
            interval_seconds=3600,
            error_backoff_seconds=0.02,
            max_error_backoff_seconds=0.05,
        ),
        on_report=reports.append,
        on_error=errors.append,
    )
    thread = _start(daemon)

    assert _wait_for(lambda: len(reports) == 1)
    daemon.stop()
    thread.join(timeout=5)

    assert len(errors) == 2
    assert all(isinstance(exc, StoreError) for exc in errors)
    assert daemon.failures == 2
    assert daemon.runs == 3


def test_change_notification_triggers_debounced_run(tmp_path: Path) -> None:
    service = _FakeService(CandidateStore(tmp_path / "files.json"))
    reports: list[RunReport] = []
    daemon = SyncDaemon(
        service,  # type: ignore[arg-type]
        DaemonSettings(interval_seconds=3600, debounce_seconds=0.05),
        on_report=reports.append,
    )
    thread = _start(daemon)
    assert _wait_for(lambda: len(reports) == 1)

    for _ in range(3):
        daemon.notify_change(tmp_path / ".env")

    assert _wait_for(lambda: len(reports) == 2)
    time.sleep(0.2)
    daemon.stop()
    thread.join(timeout=5)

    assert len(reports) == 2


def test_file_watcher_reacts_to_candidate_edits(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    candidate = project / ".env"
    candidate.write_text("A=1\n", encoding="utf-8")
    candidates = CandidateStore(tmp_path / "files.json")
    candidates.save([candidate])
    service = _FakeService(candidates)
    reports: list[RunReport] = []
    daemon = SyncDaemon(
        service,  # type: ignore[arg-type]
        DaemonSettings(interval_seconds=3600, watch_files=True, debounce_seconds=0.05),
        on_report=reports.append,
    )
    thread = _start(daemon)
    assert _wait_for(lambda: len(reports) == 1)
    time.sleep(0.2)

    candidate.write_text("A=2\n", encoding="utf-8")

    assert _wait_for(lambda: len(reports) >= 2, timeout=10)
    daemon.stop()
    thread.join(timeout=5)
    assert not thread.is_alive()
