"""Envelope codec: Argon2id key derivation plus AES-256-GCM.

Blob layout before base64 wrapping::

    salt (16 bytes) || nonce (12 bytes) || ciphertext || GCM tag (16 bytes)

A new salt and nonce are drawn for every ``encode`` call, so a key/nonce pair
is never reused. The KDF cost profile is not stored in the blob; both sides of
a sync must agree on it.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from .errors import AuthenticationFailed, MalformedBlobError

LOGGER = logging.getLogger(__name__)

SALT_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32
TAG_SIZE = 16


@dataclass(frozen=True, slots=True)
class KdfParams:
    """Argon2id cost profile.

    Attributes:
        memory_kib: Memory cost in KiB.
        iterations: Number of passes.
        lanes: Degree of parallelism.
    """

    memory_kib: int = 64 * 1024
    iterations: int = 1
    lanes: int = 4


DEFAULT_KDF_PARAMS = KdfParams()


class EnvelopeCodec:
    """Encode plaintext bytes into text blobs and back using a password."""

    def __init__(self, params: KdfParams = DEFAULT_KDF_PARAMS) -> None:
        """Initialize the codec.

        Args:
            params: Key-derivation profile applied to both encode and decode.
        """
        self.params = params

    def encode(self, plaintext: bytes, password: str) -> str:
        """Encrypt ``plaintext`` under a key derived from ``password``.

        Args:
            plaintext: Raw file contents.
            password: Shared encryption password.

        Returns:
            str: Base64 text of ``salt || nonce || ciphertext+tag``.
        """
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        sealed = AESGCM(self._derive_key(password, salt)).encrypt(nonce, plaintext, None)
        return base64.b64encode(salt + nonce + sealed).decode("ascii")

    def decode(self, blob: str, password: str) -> bytes:
        """Decrypt a blob produced by :meth:`encode`.

        Args:
            blob: Base64 text as stored remotely.
            password: Password expected to match the one used for encoding.

        Returns:
            bytes: The original plaintext.

        Raises:
            MalformedBlobError: If the blob is not base64 or is truncated.
            AuthenticationFailed: If the tag does not verify (wrong password or
                tampered data). No partial plaintext is returned.
        """
        try:
            raw = base64.b64decode(blob.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise MalformedBlobError("Encoded blob is not valid base64") from exc

        if len(raw) < SALT_SIZE + NONCE_SIZE + TAG_SIZE:
            raise MalformedBlobError(
                f"Encoded blob is too short ({len(raw)} bytes) to contain a payload"
            )

        salt = raw[:SALT_SIZE]
        nonce = raw[SALT_SIZE : SALT_SIZE + NONCE_SIZE]
        sealed = raw[SALT_SIZE + NONCE_SIZE :]
        try:
            return AESGCM(self._derive_key(password, salt)).decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise AuthenticationFailed(
                "Authentication tag mismatch (wrong password or corrupted data)"
            ) from exc

    def _derive_key(self, password: str, salt: bytes) -> bytes:
        LOGGER.debug(
            "Deriving key (memory=%d KiB, iterations=%d, lanes=%d)",
            self.params.memory_kib,
            self.params.iterations,
            self.params.lanes,
        )
        kdf = Argon2id(
            salt=salt,
            length=KEY_SIZE,
            iterations=self.params.iterations,
            lanes=self.params.lanes,
            memory_cost=self.params.memory_kib,
        )
        return kdf.derive(password.encode("utf-8"))


__all__ = [
    "DEFAULT_KDF_PARAMS",
    "EnvelopeCodec",
    "KEY_SIZE",
    "KdfParams",
    "NONCE_SIZE",
    "SALT_SIZE",
    "TAG_SIZE",
]
