"""AES-256-GCM wrapper used to seal individual chunks."""

from __future__ import annotations

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_LEN = 32
NONCE_LEN = 12
TAG_LEN = 16

__all__ = ["AesGcmEncryptor", "InvalidTag", "KEY_LEN", "NONCE_LEN", "TAG_LEN"]


class AesGcmEncryptor:
    """Seal and open byte strings under one AES-256-GCM key.

    Sealed output is ``ciphertext || tag``; the tag is always :data:`TAG_LEN`
    bytes, so sealed length equals plaintext length plus 16.
    """

    def __init__(self, key: bytes | bytearray) -> None:
        if len(key) != KEY_LEN:
            raise ValueError(f"Key must be {KEY_LEN} bytes long, got {len(key)}")
        self._aead = AESGCM(bytes(key))

    def seal(self, nonce: bytes, plaintext: bytes, aad: bytes | None = None) -> bytes:
        return self._aead.encrypt(nonce, plaintext, aad)

    def open(self, nonce: bytes, sealed: bytes, aad: bytes | None = None) -> bytes:
        """Return the plaintext or raise :class:`InvalidTag`."""
        return self._aead.decrypt(nonce, sealed, aad)

