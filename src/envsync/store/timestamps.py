"""Text encoding of stored modification times."""

from __future__ import annotations

from datetime import datetime, timezone

from .errors import TimestampParseError

STORED_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as UTC ``YYYY-MM-DD HH:MM:SS`` (sub-seconds dropped)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(STORED_FORMAT)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime.

    The primary format is ``YYYY-MM-DD HH:MM:SS``; ISO 8601 / RFC 3339 text
    (``2024-05-01T10:00:00Z``) is accepted as a fallback. Naive values are UTC.

    Raises:
        TimestampParseError: If neither format matches.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        try:
            parsed = datetime.strptime(text, STORED_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError as exc:
                raise TimestampParseError(f"Unrecognized stored timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["STORED_FORMAT", "format_timestamp", "parse_timestamp"]
