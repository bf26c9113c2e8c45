"""Configuration models describing env-sync settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EnvSyncBaseModel(BaseModel):
    """Shared configuration for env-sync Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class DatabaseSettings(EnvSyncBaseModel):
    """Remote store connection options.

    Attributes:
        url: Connection URL; the scheme selects the backend. Usually supplied via
            ``--db`` or ``ENV_SYNC_DB`` instead of the config file.
        pool_size: Connections kept open per run; should cover the worker count.
        connect_timeout_seconds: Seconds to wait for a connection or a locked database.
    """

    url: Optional[str] = None
    pool_size: int = Field(default=10, ge=1)
    connect_timeout_seconds: int = Field(default=30, ge=1)


class SyncSettings(EnvSyncBaseModel):
    """Reconciliation run options.

    Attributes:
        workers: Default number of parallel workers.
        base_path: Base directory for files outside a git working copy.
            Defaults to the current directory when unset.
        candidates_file: JSON file holding the remembered candidate paths.
        timestamp_tolerance_seconds: Window within which modification times are
            considered equal.
        store_error_alert_threshold: Number of per-file store errors in one run
            after which the backend is reported as possibly unavailable.
        strict: Whether any per-file error makes the command exit non-zero.
    """

    workers: int = Field(default=10, ge=1)
    base_path: Optional[str] = None
    candidates_file: str = "~/.env-sync/env-files.json"
    timestamp_tolerance_seconds: float = Field(default=1.0, ge=0)
    store_error_alert_threshold: int = Field(default=3, ge=1)
    strict: bool = False


class ScanSettings(EnvSyncBaseModel):
    """Options governing discovery of candidate files.

    Attributes:
        patterns: Filename globs that identify env files.
        skip_dirs: Directory names never descended into.
        include_hidden_dirs: Whether directories starting with a dot are walked.
    """

    patterns: List[str] = Field(default_factory=lambda: [".env", ".env.*"])
    skip_dirs: List[str] = Field(default_factory=lambda: ["node_modules", "vendor"])
    include_hidden_dirs: bool = False


class CryptoSettings(EnvSyncBaseModel):
    """Key-derivation cost profile.

    Every machine sharing a database must use the same values, otherwise
    decoding fails with an authentication error.

    Attributes:
        kdf_memory_kib: Argon2id memory cost in KiB.
        kdf_iterations: Argon2id pass count.
        kdf_lanes: Argon2id parallelism.
    """

    kdf_memory_kib: int = Field(default=64 * 1024, ge=8)
    kdf_iterations: int = Field(default=1, ge=1)
    kdf_lanes: int = Field(default=4, ge=1)


class DaemonSettings(EnvSyncBaseModel):
    """Background sync behaviour.

    Attributes:
        interval_seconds: Delay between scheduled runs.
        watch_files: Whether to trigger early runs when candidate files change.
        debounce_seconds: Quiet period after a change before a triggered run.
        error_backoff_seconds: Initial wait after a run that failed to start.
        max_error_backoff_seconds: Upper bound for the exponential backoff.
    """

    interval_seconds: float = Field(default=3600.0, gt=0)
    watch_files: bool = False
    debounce_seconds: float = Field(default=2.0, gt=0)
    error_backoff_seconds: float = Field(default=5.0, gt=0)
    max_error_backoff_seconds: float = Field(default=300.0, gt=0)


class LoggingSettings(EnvSyncBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        path: Optional log file; rotated when set.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    path: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(EnvSyncBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class EnvSyncConfig(EnvSyncBaseModel):
    """Top-level configuration struct for env-sync.

    Attributes:
        database: Remote store settings.
        sync: Reconciliation run settings.
        scan: Candidate discovery settings.
        crypto: Key-derivation settings.
        daemon: Background mode settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    crypto: CryptoSettings = Field(default_factory=CryptoSettings)
    daemon: DaemonSettings = Field(default_factory=DaemonSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "EnvSyncBaseModel",
    "DatabaseSettings",
    "SyncSettings",
    "ScanSettings",
    "CryptoSettings",
    "DaemonSettings",
    "LoggingSettings",
    "CLIOptions",
    "EnvSyncConfig",
]
