"""Candidate list errors."""

from envsync.errors import EnvSyncError


class StateError(EnvSyncError):
    """Base exception for candidate list operations."""


class MissingStateError(StateError):
    """Raised when no candidate list has been recorded yet."""
