"""File discovery utilities."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, Iterator

DEFAULT_PATTERNS = (".env", ".env.*")
DEFAULT_SKIP_DIRS = ("node_modules", "vendor")


class EnvFileScanner:
    """Discover env files within a directory tree subject to configuration filters."""

    def __init__(
        self,
        *,
        patterns: Iterable[str] = DEFAULT_PATTERNS,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
        include_hidden_dirs: bool = False,
    ) -> None:
        self.patterns = tuple(patterns)
        self.skip_dirs = frozenset(skip_dirs)
        self.include_hidden_dirs = include_hidden_dirs

    def scan(self, root: Path) -> Iterator[Path]:
        """Yield absolute paths of matching files under root, in walk order.

        Raises:
            ValueError: If root does not exist or is not a directory.
        """
        root = root.expanduser().resolve()
        if not root.exists():
            raise ValueError(f"Path does not exist: {root}")
        if not root.is_dir():
            raise ValueError(f"Path is not a directory: {root}")

        # Unreadable directories are skipped silently by os.walk.
        for current, dirs, files in os.walk(root):
            dirs[:] = sorted(name for name in dirs if self._descend(name))
            for name in sorted(files):
                if self.matches(name):
                    yield Path(current) / name

    def matches(self, filename: str) -> bool:
        """Return whether a bare filename is an env file."""
        return any(fnmatch.fnmatchcase(filename, pattern) for pattern in self.patterns)

    def _descend(self, dirname: str) -> bool:
        if dirname in self.skip_dirs:
            return False
        if dirname.startswith(".") and not self.include_hidden_dirs:
            return False
        return True
