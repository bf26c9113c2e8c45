"""Persisted candidate list model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class CandidateList(BaseModel):
    """Ordered absolute paths remembered by the last scan.

    Attributes:
        files: Absolute paths of candidate env files, in scan order.
        scanned_root: Directory the list was produced from, when known.
        updated_at: Time the list was last written.
    """

    files: List[str] = Field(default_factory=list)
    scanned_root: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["CandidateList"]
