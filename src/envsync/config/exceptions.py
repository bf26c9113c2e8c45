"""Custom exceptions for configuration management."""

from envsync.errors import EnvSyncError


class ConfigError(EnvSyncError):
    """Raised when configuration data cannot be processed."""
