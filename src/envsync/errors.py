"""Root of the env-sync exception hierarchy."""


class EnvSyncError(Exception):
    """Base class for errors raised by env-sync components."""
