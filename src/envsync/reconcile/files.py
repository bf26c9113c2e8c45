"""Local file writes that never leave a target half-written."""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from pathlib import Path

from .errors import LocalIOError

TEMP_PREFIX = ".envsync-"
TEMP_SUFFIX = ".tmp"


def write_atomic(target: Path, data: bytes) -> None:
    """Replace ``target`` with ``data`` in one rename.

    The bytes go to a temporary file in the target's directory, which is
    flushed to disk and renamed over ``target``. An existing target keeps its
    permission bits; new files are created owner-only. When any step fails
    the temporary file is removed and ``target`` is left as it was.

    Raises:
        LocalIOError: If the data cannot be written or moved into place.
    """
    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        mode = None
    except OSError as exc:
        raise LocalIOError(f"Failed to write {target}: {exc}") from exc

    temp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=target.parent, prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, delete=False
        ) as handle:
            temp_name = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(temp_name, mode)
        os.replace(temp_name, target)
    except OSError as exc:
        if temp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(temp_name)
        raise LocalIOError(f"Failed to write {target}: {exc}") from exc


__all__ = ["write_atomic"]
