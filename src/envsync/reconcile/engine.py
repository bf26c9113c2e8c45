"""Per-file reconciliation: decide the direction of a sync and carry it out."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from envsync.crypto import AuthenticationFailed, EnvelopeCodec, MalformedBlobError, content_hash
from envsync.identity import FileIdentity, IdentityResolver
from envsync.store import FileRecord, SqlStore, StoreError

from .errors import LocalIOError
from .files import write_atomic
from .models import LocalFile, SyncAction, SyncOutcome

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = timedelta(seconds=1)
DRY_RUN_SUFFIX = " [DRY RUN]"


def decide(
    local: LocalFile,
    remote: Optional[FileRecord],
    *,
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> SyncAction:
    """Choose the action for one file.

    Rules are evaluated in order: a missing record is uploaded; equal hashes
    are skipped; otherwise the modification times decide, and a difference
    inside the closed ``[-tolerance, tolerance]`` window is a conflict that the
    local side wins.

    Args:
        local: Snapshot of the local file.
        remote: Stored record, or ``None`` when the file was never pushed.
        tolerance: Window within which timestamps count as equal.

    Returns:
        SyncAction: The chosen action.

    Raises:
        TimestampParseError: If the stored timestamp cannot be parsed.
    """
    if remote is None:
        return SyncAction.UPLOAD
    if local.content_hash == remote.content_hash:
        return SyncAction.SKIP

    delta = local.modified_at - remote.modified_at()
    if delta > tolerance:
        return SyncAction.UPLOAD
    if delta < -tolerance:
        return SyncAction.DOWNLOAD
    return SyncAction.UPLOAD_CONFLICT


def describe(action: SyncAction, *, is_new: bool = False, forced: bool = False) -> str:
    """Return the short reason shown next to a file for ``action``."""
    if action is SyncAction.UPLOAD:
        if forced:
            return "forced"
        return "new" if is_new else "local newer"
    if action is SyncAction.DOWNLOAD:
        return "remote newer"
    if action is SyncAction.SKIP:
        return "identical"
    return "content changed, timestamps similar"


def format_outcome_line(
    action: SyncAction, display_name: str, reason: str, *, dry_run: bool = False
) -> str:
    """Render the status line printed for a reconciled file."""
    suffix = DRY_RUN_SUFFIX if dry_run else ""
    if action is SyncAction.SKIP:
        return f"= Skipped: {display_name} ({reason})"
    if action is SyncAction.DOWNLOAD:
        return f"↓ Downloaded: {display_name} ({reason}){suffix}"
    if action is SyncAction.UPLOAD_CONFLICT:
        return f"⚠ Uploaded: {display_name} ({reason}){suffix}"
    return f"↑ Uploaded: {display_name} ({reason}){suffix}"


class ReconciliationEngine:
    """Resolve, compare and transfer individual candidate files.

    One engine is shared by every worker of a run. It holds no per-file state;
    the resolver cache and the store's connection pool are thread-safe.
    """

    def __init__(
        self,
        store: SqlStore,
        codec: EnvelopeCodec,
        resolver: IdentityResolver,
        password: str,
        *,
        tolerance: timedelta = DEFAULT_TOLERANCE,
    ) -> None:
        self.store = store
        self.codec = codec
        self.resolver = resolver
        self._password = password
        self.tolerance = tolerance

    def load_local(self, path: Path, identity: FileIdentity) -> LocalFile:
        """Stat and read ``path`` once for this run.

        Raises:
            LocalIOError: If the file cannot be stat'd or read.
        """
        try:
            stat = path.stat()
            plaintext = path.read_bytes()
        except OSError as exc:
            raise LocalIOError(f"Failed to read {path}: {exc}") from exc
        return LocalFile(
            absolute_path=path,
            identity=identity,
            plaintext=plaintext,
            content_hash=content_hash(plaintext),
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def apply(
        self, action: SyncAction, local: LocalFile, remote: Optional[FileRecord]
    ) -> List[str]:
        """Perform the I/O for ``action`` and return non-fatal notes.

        Raises:
            StoreError: If the upsert or the stored timestamp fails.
            AuthenticationFailed: If the stored blob does not decrypt.
            LocalIOError: If the downloaded content cannot be written.
        """
        if action is SyncAction.SKIP:
            return []

        if action.writes_remote:
            blob = self.codec.encode(local.plaintext, self._password)
            self.store.upsert(
                local.scope_key,
                local.relative_path,
                blob,
                local.content_hash,
                local.modified_at,
            )
            return []

        if remote is None or remote.encoded_blob is None:
            raise StoreError(f"Record for {local.identity.display_name} carries no payload")
        stamp = remote.modified_at()
        try:
            plaintext = self.codec.decode(remote.encoded_blob, self._password)
        except MalformedBlobError as exc:
            raise MalformedBlobError(f"Failed to decrypt: {exc} (wrong password?)") from exc
        except AuthenticationFailed as exc:
            raise AuthenticationFailed(f"Failed to decrypt: {exc} (wrong password?)") from exc

        write_atomic(local.absolute_path, plaintext)

        notes: List[str] = []
        seconds = stamp.timestamp()
        try:
            os.utime(local.absolute_path, (seconds, seconds))
        except OSError as exc:
            logger.warning("Could not set modification time of %s: %s", local.absolute_path, exc)
            notes.append(f"couldn't set file time: {exc}")
        return notes

    def reconcile(
        self,
        path: Path,
        base_path: Path,
        *,
        dry_run: bool = False,
        force_upload: bool = False,
    ) -> SyncOutcome:
        """Run the full pipeline for one candidate.

        Args:
            path: Candidate file.
            base_path: Directory used for files outside a git working copy.
            dry_run: Decide without touching the store or the disk.
            force_upload: Push local content regardless of the remote state.

        Returns:
            SyncOutcome: Successful outcome carrying the status line.

        Raises:
            ResolutionError: If the file has no identity.
            LocalIOError: If the file cannot be read or written.
            StoreError: If the store read or write fails.
            AuthenticationFailed: If a download cannot be decrypted.
        """
        absolute = Path(path).expanduser().resolve()
        identity = self.resolver.resolve(absolute, base_path)
        local = self.load_local(absolute, identity)
        remote = self.store.get(identity.scope_key, identity.relative_path)

        if force_upload:
            action = SyncAction.UPLOAD
        else:
            action = decide(local, remote, tolerance=self.tolerance)
        reason = describe(action, is_new=remote is None, forced=force_upload)

        notes: List[str] = []
        if not dry_run:
            notes = self.apply(action, local, remote)

        logger.debug("%s -> %s (%s)", identity.display_name, action.value, reason)
        return SyncOutcome(
            path=Path(path),
            action=action,
            message=format_outcome_line(action, identity.display_name, reason, dry_run=dry_run),
            identity=identity,
            reason=reason,
            notes=notes,
            dry_run=dry_run,
        )


__all__ = [
    "DEFAULT_TOLERANCE",
    "DRY_RUN_SUFFIX",
    "ReconciliationEngine",
    "decide",
    "describe",
    "format_outcome_line",
]
