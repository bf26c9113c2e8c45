"""SQLAlchemy-backed store adapter for encrypted file records."""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from datetime import datetime
from typing import Any, ContextManager

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import NoSuchModuleError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .errors import StoreError, UnsupportedBackendError
from .models import FileRecord
from .timestamps import format_timestamp
from .urls import BackendTarget, redact_url, resolve_backend

logger = logging.getLogger(__name__)

metadata = MetaData()

# Column names match databases created by earlier env-sync releases.
env_files = Table(
    "env_files",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("repo_id", Text, nullable=False),
    Column("relative_path", Text, nullable=False),
    Column("contents", Text, nullable=False),
    Column("file_hash", Text, nullable=False),
    Column("file_modified_at", Text, nullable=False),
    Column("created_at", DateTime, server_default=func.current_timestamp()),
    Column("updated_at", DateTime, server_default=func.current_timestamp()),
    UniqueConstraint("repo_id", "relative_path", name="uq_env_files_repo_path"),
    Index("idx_env_files_repo_id", "repo_id"),
)


class SqlStore:
    """Store adapter over any SQLAlchemy engine with the ``env_files`` table.

    The engine's connection pool hands each caller its own connection, so one
    instance can be shared by all workers. Backends limited to a single shared
    connection (in-memory SQLite) have every operation serialized by a lock.
    """

    def __init__(self, engine: Engine, *, serialize: bool = False) -> None:
        self._engine = engine
        self._lock: threading.Lock | None = threading.Lock() if serialize else None
        self.connect_seconds = 0.0

    @classmethod
    def connect(cls, url: str, *, pool_size: int = 10, timeout_seconds: int = 30) -> "SqlStore":
        """Create an engine for ``url`` and verify the backend answers.

        Args:
            url: Connection string; the scheme selects the backend.
            pool_size: Connections kept by the pool (should cover the worker count).
            timeout_seconds: Connection / lock wait timeout.

        Returns:
            SqlStore: Connected adapter.

        Raises:
            UnsupportedBackendError: If the scheme or its driver is unavailable.
            StoreError: If the backend cannot be reached.
        """
        target = resolve_backend(url, timeout_seconds=timeout_seconds)
        started = time.perf_counter()
        try:
            engine = create_engine(target.engine_url, **_engine_options(target, pool_size))
        except NoSuchModuleError as exc:
            hint = " Install it with `pip install env-sync[turso]`." if target.backend == "libsql" else ""
            raise UnsupportedBackendError(
                f"No SQLAlchemy driver available for {target.backend}.{hint}"
            ) from exc
        except (SQLAlchemyError, ImportError) as exc:
            raise StoreError(f"Failed to configure database engine: {exc}") from exc

        store = cls(engine, serialize=target.single_connection)
        store.ping()
        store.connect_seconds = time.perf_counter() - started
        logger.info(
            "Connected to %s backend at %s in %.3fs",
            target.backend,
            redact_url(url),
            store.connect_seconds,
        )
        return store

    @property
    def engine(self) -> Engine:
        """Return the underlying SQLAlchemy engine."""
        return self._engine

    def ping(self) -> None:
        """Run a trivial query to prove the backend is reachable."""
        with self._guard():
            try:
                with self._engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to reach database: {exc}") from exc

    def init_schema(self) -> None:
        """Create the ``env_files`` table and its index when missing (idempotent)."""
        with self._guard():
            try:
                metadata.create_all(self._engine, checkfirst=True)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to create schema: {exc}") from exc

    def get(self, scope_key: str, relative_path: str) -> FileRecord | None:
        """Fetch one record including its encoded blob, or ``None`` if absent."""
        stmt = select(
            env_files.c.repo_id,
            env_files.c.relative_path,
            env_files.c.contents,
            env_files.c.file_hash,
            env_files.c.file_modified_at,
            env_files.c.created_at,
            env_files.c.updated_at,
        ).where(
            env_files.c.repo_id == scope_key,
            env_files.c.relative_path == relative_path,
        )
        with self._guard():
            try:
                with self._engine.connect() as conn:
                    row = conn.execute(stmt).first()
            except SQLAlchemyError as exc:
                raise StoreError(
                    f"Failed to query {scope_key}:{relative_path}: {exc}"
                ) from exc
        if row is None:
            return None
        return _to_record(row, with_blob=True)

    def upsert(
        self,
        scope_key: str,
        relative_path: str,
        encoded_blob: str,
        content_hash: str,
        content_modified_at: datetime,
    ) -> None:
        """Insert the record, or overwrite its mutable fields and refresh ``updated_at``.

        Raises:
            StoreError: If the write fails.
        """
        values = {
            "repo_id": scope_key,
            "relative_path": relative_path,
            "contents": encoded_blob,
            "file_hash": content_hash,
            "file_modified_at": format_timestamp(content_modified_at),
        }
        with self._guard():
            try:
                with self._engine.begin() as conn:
                    stmt = self._native_upsert(values)
                    if stmt is not None:
                        conn.execute(stmt)
                    else:
                        self._portable_upsert(conn, values)
            except SQLAlchemyError as exc:
                raise StoreError(
                    f"Failed to upsert {scope_key}:{relative_path}: {exc}"
                ) from exc

    def list(self) -> list[FileRecord]:
        """Return record metadata (no blobs) ordered by scope key, then path."""
        stmt = select(
            env_files.c.repo_id,
            env_files.c.relative_path,
            env_files.c.file_hash,
            env_files.c.file_modified_at,
            env_files.c.created_at,
            env_files.c.updated_at,
        ).order_by(env_files.c.repo_id, env_files.c.relative_path)
        with self._guard():
            try:
                with self._engine.connect() as conn:
                    rows = conn.execute(stmt).all()
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to list records: {exc}") from exc
        return [_to_record(row, with_blob=False) for row in rows]

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    def __enter__(self) -> "SqlStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _guard(self) -> ContextManager[Any]:
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def _native_upsert(self, values: dict[str, Any]) -> Any | None:
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None

        stmt = insert(env_files).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[env_files.c.repo_id, env_files.c.relative_path],
            set_={
                "contents": stmt.excluded.contents,
                "file_hash": stmt.excluded.file_hash,
                "file_modified_at": stmt.excluded.file_modified_at,
                "updated_at": func.current_timestamp(),
            },
        )

    def _portable_upsert(self, conn: Any, values: dict[str, Any]) -> None:
        result = conn.execute(
            update(env_files)
            .where(
                env_files.c.repo_id == values["repo_id"],
                env_files.c.relative_path == values["relative_path"],
            )
            .values(
                contents=values["contents"],
                file_hash=values["file_hash"],
                file_modified_at=values["file_modified_at"],
                updated_at=func.current_timestamp(),
            )
        )
        if result.rowcount == 0:
            conn.execute(env_files.insert().values(**values))


def _engine_options(target: BackendTarget, pool_size: int) -> dict[str, Any]:
    options: dict[str, Any] = {"connect_args": dict(target.connect_args)}
    if target.single_connection:
        options["poolclass"] = StaticPool
    elif target.backend in ("sqlite", "postgresql"):
        options["pool_size"] = pool_size
        options["max_overflow"] = 0
        options["pool_pre_ping"] = True
    return options


def _to_record(row: Row[Any], *, with_blob: bool) -> FileRecord:
    data = row._mapping
    modified = data["file_modified_at"]
    if isinstance(modified, datetime):
        modified = format_timestamp(modified)
    return FileRecord(
        scope_key=data["repo_id"],
        relative_path=data["relative_path"],
        encoded_blob=data["contents"] if with_blob else None,
        content_hash=data["file_hash"],
        content_modified_at=str(modified),
        created_at=data["created_at"],
        updated_at=data["updated_at"],
    )


__all__ = ["SqlStore", "env_files", "metadata"]
