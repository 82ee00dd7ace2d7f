"""Per-chunk nonce sequencing."""
from __future__ import annotations

from typing import Iterator

from sealstream.crypto.aead import NONCE_LEN


def increment_nonce(nonce: bytearray) -> None:
    """Add one to ``nonce`` as a big-endian integer, wrapping to zero on overflow."""

    for idx in range(len(nonce) - 1, -1, -1):
        nonce[idx] = (nonce[idx] + 1) & 0xFF
        if nonce[idx]:
            break


class NonceSequencer:
    """Deterministic nonce stream starting at a stream's base nonce.

    Each stream owns one sequencer. ``next()`` hands out the current value and
    advances the internal counter, so chunk ``i`` is sealed under
    ``base_nonce + i`` (mod 2**96).
    """

    def __init__(self, base_nonce: bytes) -> None:
        if len(base_nonce) != NONCE_LEN:
            raise ValueError(f"Nonce must be {NONCE_LEN} bytes long, got {len(base_nonce)}")
        self._current = bytearray(base_nonce)
        self.issued = 0

    def peek(self) -> bytes:
        return bytes(self._current)

    def next(self) -> bytes:
        nonce = bytes(self._current)
        increment_nonce(self._current)
        self.issued += 1
        return nonce

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        return self.next()
