"""Restore every stored record into a directory tree."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional

from envsync.crypto import AuthenticationFailed, EnvelopeCodec
from envsync.errors import EnvSyncError
from envsync.identity import LOCAL_SCOPE, FileIdentity
from envsync.store import FileRecord, SqlStore, StoreError

from .errors import LocalIOError
from .files import write_atomic

logger = logging.getLogger(__name__)


class UnsafeTargetError(EnvSyncError):
    """Raised when a stored path would land outside the output directory."""


@dataclass(slots=True)
class RestoreOutcome:
    """Result of restoring one record.

    Attributes:
        identity: Scope key and relative path of the record.
        target: Destination path, when one could be computed.
        error: Error message for failed records.
        notes: Non-fatal remarks.
    """

    identity: FileIdentity
    target: Optional[Path] = None
    error: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.ok:
            return f"↓ Downloaded: {self.identity.display_name} -> {self.target}"
        return f"✗ Error downloading {self.identity.display_name}: {self.error}"

    def to_dict(self) -> dict:
        return {
            "scope_key": self.identity.scope_key,
            "relative_path": self.identity.relative_path,
            "target": str(self.target) if self.target else None,
            "error": self.error,
            "notes": list(self.notes),
        }


@dataclass(slots=True)
class RestoreReport:
    """Aggregated result of :func:`restore_all`."""

    output_dir: Path
    outcomes: List[RestoreOutcome] = field(default_factory=list)

    @property
    def restored(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    def to_payload(self) -> dict:
        return {
            "output_dir": str(self.output_dir),
            "counts": {"restored": self.restored, "errors": self.failed},
            "files": [outcome.to_dict() for outcome in self.outcomes],
        }


def target_path(output_dir: Path, identity: FileIdentity) -> Path:
    """Compute where a record is written below ``output_dir``.

    Local records land at ``output_dir/relative_path``; repository records at
    ``output_dir/scope_key/relative_path``. Scope keys taken from a remote that
    is a local path (``/srv/git/api``) are placed below ``output_dir`` as well.

    Raises:
        UnsafeTargetError: If the stored path is absolute or climbs out of
            ``output_dir``.
    """
    root = output_dir.expanduser().resolve()
    parts = PurePosixPath(identity.relative_path)
    if identity.scope_key != LOCAL_SCOPE:
        parts = PurePosixPath(identity.scope_key.lstrip("/")) / parts
    if parts.is_absolute() or ".." in parts.parts:
        raise UnsafeTargetError(f"Refusing to write outside {root}: {parts}")
    candidate = (root / Path(*parts.parts)).resolve()
    if candidate == root or not candidate.is_relative_to(root):
        raise UnsafeTargetError(f"Refusing to write outside {root}: {parts}")
    return candidate


def restore_all(
    store: SqlStore,
    codec: EnvelopeCodec,
    password: str,
    output_dir: Path,
    *,
    on_outcome: Optional[Callable[[RestoreOutcome], None]] = None,
) -> RestoreReport:
    """Decrypt every stored record into ``output_dir``.

    Per-record failures are recorded on the report and do not stop the
    restore. Each restored file receives the stored modification time.

    Raises:
        StoreError: If the record list cannot be read.
    """
    report = RestoreReport(output_dir=output_dir.expanduser().resolve())
    for summary in store.list():
        identity = FileIdentity(summary.scope_key, summary.relative_path)
        outcome = RestoreOutcome(identity=identity)
        try:
            outcome.target = target_path(report.output_dir, identity)
            outcome.notes = _restore_one(store, codec, password, identity, outcome.target)
        except EnvSyncError as exc:
            logger.info("Failed to restore %s: %s", identity.display_name, exc)
            outcome.error = str(exc)
        report.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)
    return report


def _restore_one(
    store: SqlStore,
    codec: EnvelopeCodec,
    password: str,
    identity: FileIdentity,
    target: Path,
) -> List[str]:
    record: Optional[FileRecord] = store.get(identity.scope_key, identity.relative_path)
    if record is None or record.encoded_blob is None:
        raise StoreError(f"Record {identity.display_name} disappeared during restore")
    stamp = record.modified_at()
    try:
        plaintext = codec.decode(record.encoded_blob, password)
    except AuthenticationFailed as exc:
        raise AuthenticationFailed(f"Failed to decrypt: {exc} (wrong password?)") from exc

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LocalIOError(f"Failed to create {target.parent}: {exc}") from exc
    write_atomic(target, plaintext)

    seconds = stamp.timestamp()
    try:
        os.utime(target, (seconds, seconds))
    except OSError as exc:
        logger.warning("Could not set modification time of %s: %s", target, exc)
        return [f"couldn't set file time: {exc}"]
    return []


__all__ = ["RestoreOutcome", "RestoreReport", "UnsafeTargetError", "restore_all", "target_path"]
