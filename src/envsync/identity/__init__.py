"""Mapping of local paths to stable ``(scope_key, relative_path)`` identities."""

from .errors import ResolutionError
from .resolver import (
    LOCAL_SCOPE,
    FileIdentity,
    IdentityResolver,
    find_git_root,
    normalize_remote_url,
    shorten_scope,
)

__all__ = [
    "LOCAL_SCOPE",
    "FileIdentity",
    "IdentityResolver",
    "ResolutionError",
    "find_git_root",
    "normalize_remote_url",
    "shorten_scope",
]
