"""Identity resolution errors."""

from envsync.errors import EnvSyncError


class ResolutionError(EnvSyncError):
    """Raised when no stable identity can be computed for a file."""
