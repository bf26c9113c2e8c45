"""Plaintext digests used for equality checks without decryption."""

from __future__ import annotations

import base64
import hashlib


def content_hash(data: bytes) -> str:
    """Return the standard-base64 SHA-256 digest of ``data``."""
    return base64.b64encode(hashlib.sha256(data).digest()).decode("ascii")


__all__ = ["content_hash"]
