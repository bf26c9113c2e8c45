"""Persistence for the list of candidate env files produced by ``scan``."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from .errors import MissingStateError, StateError
from .models import CandidateList

DEFAULT_CANDIDATES_PATH = Path("~/.env-sync/env-files.json")


class CandidateStore:
    """Read and write the candidate list JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON file. Defaults to ``~/.env-sync/env-files.json``.
        """
        self._path = (path or DEFAULT_CANDIDATES_PATH).expanduser()

    @property
    def path(self) -> Path:
        """Return the resolved location of the candidate list.

        Returns:
            Path: JSON file backing this store.
        """
        return self._path

    def load(self) -> CandidateList:
        """Load the recorded candidate list.

        Returns:
            CandidateList: Deserialized candidate list.

        Raises:
            MissingStateError: If no list has been written yet.
            StateError: If the stored data cannot be parsed.
        """
        if not self._path.exists():
            raise MissingStateError(f"No candidate list found at {self._path}")

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StateError(f"Invalid candidate list data: {exc}") from exc

        try:
            return CandidateList.model_validate(data)
        except ValidationError as exc:
            raise StateError(f"Invalid candidate list data: {exc}") from exc

    def paths(self) -> list[Path]:
        """Return remembered paths, or an empty list when nothing was scanned.

        Returns:
            list[Path]: Candidate paths in their recorded order.

        Raises:
            StateError: If the stored data cannot be parsed.
        """
        try:
            candidates = self.load()
        except MissingStateError:
            return []
        return [Path(entry) for entry in candidates.files]

    def save(self, files: Iterable[Path | str], *, scanned_root: Path | None = None) -> CandidateList:
        """Replace the candidate list.

        Args:
            files: Absolute candidate paths in the order they should be synced.
            scanned_root: Directory the list was produced from.

        Returns:
            CandidateList: The model that was written.
        """
        candidates = CandidateList(
            files=[str(Path(entry)) for entry in files],
            scanned_root=str(scanned_root) if scanned_root is not None else None,
            updated_at=datetime.now(timezone.utc),
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(candidates.model_dump(mode="json"), indent=2), encoding="utf-8"
        )
        return candidates


__all__ = [
    "CandidateStore",
    "CandidateList",
    "DEFAULT_CANDIDATES_PATH",
    "StateError",
    "MissingStateError",
]
