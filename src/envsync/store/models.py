"""Remote record model."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .timestamps import parse_timestamp


class FileRecord(BaseModel):
    """One synced file as stored remotely.

    ``encoded_blob`` is ``None`` for rows returned by ``list()``, which skips
    the payload column. ``content_modified_at`` keeps the stored text so that
    parsing failures surface per file, at decision time.
    """

    scope_key: str
    relative_path: str
    content_hash: str
    content_modified_at: str
    encoded_blob: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def modified_at(self) -> datetime:
        """Return ``content_modified_at`` as an aware UTC datetime.

        Raises:
            TimestampParseError: If the stored text matches no known format.
        """
        return parse_timestamp(self.content_modified_at)


__all__ = ["FileRecord"]
