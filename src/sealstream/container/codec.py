"""Chunk framing on top of AES-GCM.

A frame is ``FrameLen || SealedChunk`` where ``FrameLen`` is the 4-byte
big-endian length of ``SealedChunk``. Sealed chunks carry no associated data;
their position in the stream is bound only through the per-chunk nonce.
"""
from __future__ import annotations

from sealstream.container.format import (
    FRAME_LEN_SIZE,
    MAX_CHUNK_SIZE,
    max_sealed_len,
    pack_frame_len,
    read_exact,
    unpack_frame_len,
    validate_chunk_size,
)
from sealstream.crypto.aead import AesGcmEncryptor, InvalidTag
from sealstream.errors import AuthFailure, FrameTooLarge, HeaderTruncated, TruncatedFrame

AUTH_FAILURE_MESSAGE = "Chunk failed authentication (wrong password or corrupted data)"


class ChunkCodec:
    """Seal, open and read frames for one stream key."""

    def __init__(self, key: bytes | bytearray, *, chunk_size: int = MAX_CHUNK_SIZE) -> None:
        self.chunk_size = validate_chunk_size(chunk_size)
        self.max_sealed_len = max_sealed_len(chunk_size)
        self._aead = AesGcmEncryptor(key)

    def seal(self, nonce: bytes, plaintext: bytes) -> bytes:
        if len(plaintext) > self.chunk_size:
            raise ValueError(f"Chunk of {len(plaintext)} bytes exceeds chunk size {self.chunk_size}")
        sealed = self._aead.seal(nonce, plaintext)
        return pack_frame_len(len(sealed)) + sealed

    def _check_len(self, declared: int) -> int:
        if declared > self.max_sealed_len:
            raise FrameTooLarge(declared, self.max_sealed_len)
        return declared

    def unseal(self, nonce: bytes, sealed: bytes) -> bytes:
        try:
            return self._aead.open(nonce, sealed)
        except InvalidTag as exc:
            raise AuthFailure(AUTH_FAILURE_MESSAGE) from exc

    def open(self, nonce: bytes, frame: bytes) -> bytes:
        """Open a complete frame held in memory."""

        if len(frame) < FRAME_LEN_SIZE:
            raise HeaderTruncated("Frame length prefix truncated")
        declared = self._check_len(unpack_frame_len(frame[:FRAME_LEN_SIZE]))
        sealed = frame[FRAME_LEN_SIZE : FRAME_LEN_SIZE + declared]
        if len(sealed) != declared:
            raise TruncatedFrame(f"Frame declares {declared} bytes but only {len(sealed)} are present")
        return self.unseal(nonce, sealed)

    def read_frame(self, source) -> bytes | None:
        """Read one frame's sealed bytes from ``source``.

        Returns ``None`` when the source is exhausted exactly at a frame
        boundary. The body is never read when the declared length is too large.
        """

        prefix = read_exact(source, FRAME_LEN_SIZE)
        if not prefix:
            return None
        if len(prefix) != FRAME_LEN_SIZE:
            raise HeaderTruncated(
                f"Frame length prefix truncated ({len(prefix)} of {FRAME_LEN_SIZE} bytes)"
            )
        declared = self._check_len(unpack_frame_len(prefix))
        sealed = read_exact(source, declared)
        if len(sealed) != declared:
            raise TruncatedFrame("unexpected EOF while reading chunk")
        return sealed


def seal_frame(key: bytes, nonce: bytes, plaintext: bytes, *, chunk_size: int = MAX_CHUNK_SIZE) -> bytes:
    return ChunkCodec(key, chunk_size=chunk_size).seal(nonce, plaintext)


def open_frame(key: bytes, nonce: bytes, frame: bytes, *, chunk_size: int = MAX_CHUNK_SIZE) -> bytes:
    return ChunkCodec(key, chunk_size=chunk_size).open(nonce, frame)


__all__ = ["AUTH_FAILURE_MESSAGE", "ChunkCodec", "open_frame", "seal_frame"]
