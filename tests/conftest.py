"""Shared fixtures for env-sync tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from envsync.crypto import EnvelopeCodec, KdfParams
from envsync.store import SqlStore

# Argon2id at 64 MiB per call makes large test suites slow; the cost profile
# only affects speed, never the blob layout.
FAST_KDF = KdfParams(memory_kib=256, iterations=1, lanes=1)
FAST_KDF_ENV = {
    "ENV_SYNC__CRYPTO__KDF_MEMORY_KIB": "256",
    "ENV_SYNC__CRYPTO__KDF_ITERATIONS": "1",
    "ENV_SYNC__CRYPTO__KDF_LANES": "1",
}
PASSWORD = "correct horse battery staple"

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


def sqlite_url(path: Path) -> str:
    """Return a SQLAlchemy URL for a file-backed SQLite database."""
    return f"sqlite:///{path}"


def init_git_repo(path: Path, remote: str | None = None) -> Path:
    """Create a git working copy at ``path``, optionally with an ``origin`` remote.

    Args:
        path: Directory to initialize.
        remote: Remote URL registered as ``origin``.

    Returns:
        Path: The working-copy root.
    """
    path.mkdir(parents=True, exist_ok=True)
    subprocess.run(["git", "init", "-q", str(path)], check=True, capture_output=True)
    if remote is not None:
        subprocess.run(
            ["git", "remote", "add", "origin", remote],
            cwd=path,
            check=True,
            capture_output=True,
        )
    return path


def set_mtime(path: Path, moment: datetime) -> None:
    """Set both atime and mtime of ``path`` to ``moment``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = moment.timestamp()
    os.utime(path, (seconds, seconds))


def cli_env(home: Path, database: Path | None = None, **extra: str) -> dict[str, str]:
    """Return an environment for CliRunner with HOME isolated and a cheap KDF.

    Args:
        home: Directory used as HOME.
        database: Optional SQLite file exported as ``ENV_SYNC_DB``.
        **extra: Additional variables.

    Returns:
        dict[str, str]: Environment mapping.
    """
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("ENV_SYNC")
    }
    env["HOME"] = str(home)
    env["COLUMNS"] = "400"
    env.update(FAST_KDF_ENV)
    if database is not None:
        env["ENV_SYNC_DB"] = sqlite_url(database)
    env.update(extra)
    return env


@pytest.fixture()
def codec() -> EnvelopeCodec:
    """Codec using the cheap key-derivation profile."""
    return EnvelopeCodec(FAST_KDF)


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[SqlStore]:
    """File-backed SQLite store with the schema applied."""
    instance = SqlStore.connect(sqlite_url(tmp_path / "store.db"))
    instance.init_schema()
    try:
        yield instance
    finally:
        instance.close()
