"""Password-based envelope encryption for stored file contents."""

from .codec import (
    DEFAULT_KDF_PARAMS,
    NONCE_SIZE,
    SALT_SIZE,
    EnvelopeCodec,
    KdfParams,
)
from .errors import AuthenticationFailed, MalformedBlobError
from .hashing import content_hash

__all__ = [
    "AuthenticationFailed",
    "DEFAULT_KDF_PARAMS",
    "EnvelopeCodec",
    "KdfParams",
    "MalformedBlobError",
    "NONCE_SIZE",
    "SALT_SIZE",
    "content_hash",
]
