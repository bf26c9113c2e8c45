"""Relational store adapter for encrypted env file records."""

from .errors import StoreError, TimestampParseError, UnsupportedBackendError
from .models import FileRecord
from .sql import SqlStore
from .timestamps import STORED_FORMAT, format_timestamp, parse_timestamp
from .urls import BackendTarget, redact_url, resolve_backend

__all__ = [
    "BackendTarget",
    "FileRecord",
    "STORED_FORMAT",
    "SqlStore",
    "StoreError",
    "TimestampParseError",
    "UnsupportedBackendError",
    "format_timestamp",
    "parse_timestamp",
    "redact_url",
    "resolve_backend",
]
