"""Long-running sync mode."""

from .service import SyncDaemon

__all__ = ["SyncDaemon"]
