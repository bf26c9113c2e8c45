"""Discovery of candidate env files."""

from .discovery import EnvFileScanner

__all__ = ["EnvFileScanner"]
