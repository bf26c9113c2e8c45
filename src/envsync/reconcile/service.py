"""Wire configuration, candidate list, store and executor into one sync run."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional

from envsync.config import ConfigError
from envsync.config.models import CryptoSettings, EnvSyncConfig
from envsync.crypto import EnvelopeCodec, KdfParams
from envsync.identity import IdentityResolver
from envsync.state import CandidateStore
from envsync.store import FileRecord, SqlStore

from .engine import ReconciliationEngine
from .errors import NoCandidatesError
from .executor import OutcomeCallback, SyncExecutor
from .models import RunReport

logger = logging.getLogger(__name__)

StoreFactory = Callable[..., SqlStore]


def build_codec(settings: CryptoSettings) -> EnvelopeCodec:
    """Return a codec using the configured key-derivation profile."""
    return EnvelopeCodec(
        KdfParams(
            memory_kib=settings.kdf_memory_kib,
            iterations=settings.kdf_iterations,
            lanes=settings.kdf_lanes,
        )
    )


class SyncService:
    """Run reconciliation passes for the remembered candidate files."""

    def __init__(
        self,
        config: EnvSyncConfig,
        *,
        database_url: Optional[str],
        password: Optional[str],
        candidate_store: Optional[CandidateStore] = None,
        base_path: Optional[Path] = None,
        workers: Optional[int] = None,
        store_factory: Optional[StoreFactory] = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Loaded env-sync configuration.
            database_url: Store connection URL.
            password: Shared encryption password; only required for runs that
                encode or decode content.
            candidate_store: Candidate list location; defaults to the configured file.
            base_path: Directory for files outside git working copies; defaults to
                the configured base path or the current directory.
            workers: Worker count override.
            store_factory: Callable creating a connected store (for tests).

        Raises:
            ConfigError: If the URL is missing.
        """
        if not database_url:
            raise ConfigError(
                "No database URL configured. Pass --db, set ENV_SYNC_DB or database.url."
            )
        self._config = config
        self._database_url = database_url
        self._password = password
        self._candidates = candidate_store or CandidateStore(Path(config.sync.candidates_file))
        configured_base = config.sync.base_path
        base = base_path or (Path(configured_base) if configured_base else Path.cwd())
        self.base_path = base.expanduser().resolve()
        self.workers = max(1, workers or config.sync.workers)
        self._store_factory = store_factory or SqlStore.connect
        self.codec = build_codec(config.crypto)

    @property
    def candidate_store(self) -> CandidateStore:
        return self._candidates

    def candidates(self) -> List[Path]:
        """Return the remembered candidate paths.

        Raises:
            NoCandidatesError: If nothing has been scanned yet.
            StateError: If the candidate list cannot be parsed.
        """
        paths = self._candidates.paths()
        if not paths:
            raise NoCandidatesError("No env files found. Run 'env-sync scan <path>' first.")
        return paths

    def open_store(self) -> SqlStore:
        """Connect to the store and make sure the schema exists.

        Raises:
            StoreError: If the backend is unsupported or unreachable.
        """
        settings = self._config.database
        store = self._store_factory(
            self._database_url,
            pool_size=max(settings.pool_size, self.workers),
            timeout_seconds=settings.connect_timeout_seconds,
        )
        try:
            store.init_schema()
        except Exception:
            store.close()
            raise
        return store

    def run(
        self,
        *,
        dry_run: bool = False,
        force_upload: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> RunReport:
        """Reconcile every candidate once.

        Errors raised before dispatch (no candidates, unreadable list, store
        connection or schema) propagate; per-file errors end up in the report.
        """
        password = self.password
        paths = self.candidates()
        store = self.open_store()
        try:
            engine = ReconciliationEngine(
                store,
                self.codec,
                IdentityResolver(),
                password,
                tolerance=timedelta(seconds=self._config.sync.timestamp_tolerance_seconds),
            )
            executor = SyncExecutor(
                engine,
                workers=self.workers,
                store_error_alert_threshold=self._config.sync.store_error_alert_threshold,
            )
            logger.info(
                "Syncing %d file(s) with up to %d workers%s",
                len(paths),
                self.workers,
                " (dry run)" if dry_run else "",
            )
            report = executor.run(
                paths,
                self.base_path,
                dry_run=dry_run,
                on_outcome=on_outcome,
                force_upload=force_upload,
            )
        finally:
            store.close()
        report.connect_seconds = store.connect_seconds
        return report

    def list_records(self) -> List[FileRecord]:
        """Return stored record metadata ordered by scope key and path."""
        store = self.open_store()
        try:
            return store.list()
        finally:
            store.close()

    @property
    def password(self) -> str:
        """Return the encryption password.

        Raises:
            ConfigError: If no password was provided.
        """
        if not self._password:
            raise ConfigError(
                "No encryption password provided. Pass --password or set ENV_SYNC_PASSWORD."
            )
        return self._password


__all__ = ["SyncService", "build_codec"]
