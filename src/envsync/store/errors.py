"""Store adapter errors."""

from envsync.errors import EnvSyncError


class StoreError(EnvSyncError):
    """Raised when a read or write against the backing database fails."""


class TimestampParseError(StoreError):
    """Raised when a stored modification time matches no known format."""


class UnsupportedBackendError(StoreError):
    """Raised when a connection URL names a backend env-sync cannot use."""
