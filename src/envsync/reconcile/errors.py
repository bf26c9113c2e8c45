"""Reconciliation errors."""

from envsync.errors import EnvSyncError


class LocalIOError(EnvSyncError):
    """Raised when a candidate file cannot be read or written locally."""


class NoCandidatesError(EnvSyncError):
    """Raised when a run is requested without any candidate files."""
