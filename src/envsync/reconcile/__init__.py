"""Reconciliation of local env files against the remote store."""

from .engine import (
    DEFAULT_TOLERANCE,
    DRY_RUN_SUFFIX,
    ReconciliationEngine,
    decide,
    describe,
    format_outcome_line,
)
from .errors import LocalIOError, NoCandidatesError
from .executor import SyncExecutor
from .models import LocalFile, RunCounters, RunReport, SyncAction, SyncOutcome
from .service import SyncService, build_codec
from .transfer import RestoreOutcome, RestoreReport, UnsafeTargetError, restore_all, target_path

__all__ = [
    "DEFAULT_TOLERANCE",
    "DRY_RUN_SUFFIX",
    "LocalFile",
    "LocalIOError",
    "NoCandidatesError",
    "ReconciliationEngine",
    "RestoreOutcome",
    "RestoreReport",
    "RunCounters",
    "RunReport",
    "SyncAction",
    "SyncExecutor",
    "SyncOutcome",
    "SyncService",
    "UnsafeTargetError",
    "build_codec",
    "decide",
    "describe",
    "format_outcome_line",
    "restore_all",
    "target_path",
]
