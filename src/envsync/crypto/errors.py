"""Codec errors."""

from envsync.errors import EnvSyncError


class AuthenticationFailed(EnvSyncError):
    """Raised when a blob cannot be opened: wrong password or corrupted data."""


class MalformedBlobError(AuthenticationFailed):
    """Raised when a blob is not valid base64 or is too short to hold a payload."""
