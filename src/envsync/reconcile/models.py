"""Data structures describing reconciliation decisions and results."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from envsync.identity import FileIdentity


class SyncAction(str, Enum):
    """Action chosen for one file."""

    UPLOAD = "upload"
    DOWNLOAD = "download"
    SKIP = "skip"
    UPLOAD_CONFLICT = "upload_conflict"

    @property
    def writes_remote(self) -> bool:
        """Whether the action pushes local content to the store."""
        return self in (SyncAction.UPLOAD, SyncAction.UPLOAD_CONFLICT)


@dataclass(slots=True)
class LocalFile:
    """Snapshot of a candidate file taken once per run.

    Attributes:
        absolute_path: Resolved location on disk.
        identity: Scope key and relative path of the file.
        plaintext: Raw file contents.
        content_hash: Digest of ``plaintext``.
        modified_at: Modification time as an aware UTC datetime.
    """

    absolute_path: Path
    identity: FileIdentity
    plaintext: bytes
    content_hash: str
    modified_at: datetime

    @property
    def scope_key(self) -> str:
        return self.identity.scope_key

    @property
    def relative_path(self) -> str:
        return self.identity.relative_path


@dataclass(slots=True)
class SyncOutcome:
    """Result of reconciling a single candidate.

    Attributes:
        path: Candidate path as supplied by the caller.
        action: Chosen action, or ``None`` when the file failed.
        message: Human-readable status line.
        identity: Resolved identity, when resolution succeeded.
        reason: Short explanation of the decision (``new``, ``local newer``...).
        error: Error message for failed files.
        error_kind: Exception class name for failed files.
        notes: Non-fatal remarks (for example an mtime that could not be set).
        dry_run: Whether the action was only planned.
    """

    path: Path
    action: Optional[SyncAction]
    message: str
    identity: Optional[FileIdentity] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """Whether the file was reconciled without error."""
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "path": str(self.path),
            "scope_key": self.identity.scope_key if self.identity else None,
            "relative_path": self.identity.relative_path if self.identity else None,
            "action": self.action.value if self.action else None,
            "reason": self.reason,
            "message": self.message,
            "error": self.error,
            "error_kind": self.error_kind,
            "notes": list(self.notes),
        }


class RunCounters:
    """Outcome tallies shared by all workers of one run.

    Increments happen under an internal lock so concurrent workers never lose
    an update. Read the totals with :meth:`snapshot` once workers are joined.
    """

    __slots__ = ("_lock", "uploaded", "downloaded", "skipped", "conflicted", "errors")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.uploaded = 0
        self.downloaded = 0
        self.skipped = 0
        self.conflicted = 0
        self.errors = 0

    def record(self, outcome: SyncOutcome) -> None:
        """Count one finished outcome under the lock."""
        with self._lock:
            if not outcome.ok or outcome.action is None:
                self.errors += 1
            elif outcome.action is SyncAction.UPLOAD:
                self.uploaded += 1
            elif outcome.action is SyncAction.DOWNLOAD:
                self.downloaded += 1
            elif outcome.action is SyncAction.SKIP:
                self.skipped += 1
            else:
                self.conflicted += 1

    def snapshot(self) -> Dict[str, int]:
        """Return a consistent copy of the counters."""
        with self._lock:
            return {
                "uploaded": self.uploaded,
                "downloaded": self.downloaded,
                "skipped": self.skipped,
                "conflicted": self.conflicted,
                "errors": self.errors,
            }

    @property
    def total(self) -> int:
        return sum(self.snapshot().values())


@dataclass(slots=True)
class RunReport:
    """Aggregated result of a reconciliation run.

    Attributes:
        counters: Final counter values keyed by outcome name.
        outcomes: Per-file outcomes in completion order.
        workers: Number of worker threads actually started.
        dry_run: Whether the run only planned actions.
        connect_seconds: Time spent connecting to the store.
        elapsed_seconds: Wall time of the dispatch phase.
        store_errors: Number of files that failed with a store error.
        backend_suspect: Whether store errors reached the alert threshold.
    """

    counters: Dict[str, int]
    outcomes: List[SyncOutcome] = field(default_factory=list)
    workers: int = 0
    dry_run: bool = False
    connect_seconds: float = 0.0
    elapsed_seconds: float = 0.0
    store_errors: int = 0
    backend_suspect: bool = False

    @property
    def total(self) -> int:
        return sum(self.counters.values())

    @property
    def failed(self) -> List[SyncOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def all_failed(self) -> bool:
        """Whether at least one file was attempted and every file failed."""
        return self.total > 0 and self.counters.get("errors", 0) == self.total

    @property
    def files_per_second(self) -> Optional[float]:
        if self.elapsed_seconds <= 0:
            return None
        return self.total / self.elapsed_seconds

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON form used by ``--json`` output."""
        return {
            "dry_run": self.dry_run,
            "counts": dict(self.counters),
            "total": self.total,
            "workers": self.workers,
            "timings": {
                "connect_seconds": round(self.connect_seconds, 4),
                "elapsed_seconds": round(self.elapsed_seconds, 4),
                "files_per_second": (
                    round(self.files_per_second, 2) if self.files_per_second else None
                ),
            },
            "store_errors": self.store_errors,
            "backend_suspect": self.backend_suspect,
            "files": [outcome.to_dict() for outcome in self.outcomes],
        }


__all__ = [
    "LocalFile",
    "RunCounters",
    "RunReport",
    "SyncAction",
    "SyncOutcome",
]
