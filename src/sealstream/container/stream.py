"""Streaming encryption and decryption pipeline.

Encrypt: write header, derive key, then read -> seal -> write one frame per
non-empty read. Decrypt: read header, derive key, then read frame -> open ->
write plaintext until the source ends on a frame boundary.

Both directions are generators so that any transport able to consume an
iterator of byte strings (a file, a socket, a WSGI response) can drive them
without buffering more than one chunk.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import IO, Callable, Iterator, Optional

from sealstream.container.codec import ChunkCodec
from sealstream.container.format import (
    FRAME_LEN_SIZE,
    HEADER_LEN,
    MAX_CHUNK_SIZE,
    TAG_LEN,
    ContainerHeader,
    read_header_from_stream,
    validate_chunk_size,
)
from sealstream.container.nonce import NonceSequencer
from sealstream.crypto.kdf import Pbkdf2Params, derive_key_from_password, recommended_params
from sealstream.crypto.secure_memory import SecureBuffer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

__all__ = [
    "ProgressCallback",
    "StreamStats",
    "decrypt_stream",
    "encrypt_stream",
    "iter_decrypt",
    "iter_encrypt",
]


@dataclass(frozen=True)
class StreamStats:
    chunks: int
    plaintext_bytes: int

    @property
    def container_bytes(self) -> int:
        return HEADER_LEN + self.plaintext_bytes + self.chunks * (FRAME_LEN_SIZE + TAG_LEN)


def _stream_key(password: str | bytes, salt: bytes, kdf_params: Pbkdf2Params | None) -> SecureBuffer:
    params = kdf_params or recommended_params()
    return SecureBuffer.from_bytes(
        derive_key_from_password(password, salt, iterations=params.iterations)
    )


def iter_encrypt(
    source: IO[bytes],
    password: str | bytes,
    *,
    total_bytes: int = 0,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
    chunk_size: int = MAX_CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield the container header, then one frame per chunk read from ``source``.

    ``on_progress(processed, total_bytes)`` runs after the consumer has taken
    each frame, with ``processed`` counting plaintext bytes.
    """

    validate_chunk_size(chunk_size)
    header = ContainerHeader.generate()
    yield header.to_bytes()

    processed = 0
    with _stream_key(password, header.salt, kdf_params) as key:
        codec = ChunkCodec(key, chunk_size=chunk_size)
        nonces = NonceSequencer(header.base_nonce)
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            yield codec.seal(nonces.next(), chunk)
            processed += len(chunk)
            if on_progress is not None:
                on_progress(processed, total_bytes)

    logger.debug("encrypted %d bytes in %d chunks", processed, nonces.issued)


def iter_decrypt(
    source: IO[bytes],
    password: str | bytes,
    *,
    total_bytes: int = 0,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
    chunk_size: int = MAX_CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield plaintext chunks as soon as each frame authenticates.

    ``on_progress(consumed, total_bytes)`` counts container bytes read so far,
    header and length prefixes included, so ``total_bytes`` is the container
    size when known.

    A failure stops the iteration; chunks yielded before it are authentic but
    the output as a whole is incomplete.
    """

    validate_chunk_size(chunk_size)
    header = read_header_from_stream(source)
    consumed = HEADER_LEN

    with _stream_key(password, header.salt, kdf_params) as key:
        codec = ChunkCodec(key, chunk_size=chunk_size)
        nonces = NonceSequencer(header.base_nonce)
        while True:
            sealed = codec.read_frame(source)
            if sealed is None:
                break
            plaintext = codec.unseal(nonces.next(), sealed)
            consumed += FRAME_LEN_SIZE + len(sealed)
            yield plaintext
            if on_progress is not None:
                on_progress(consumed, total_bytes)

    logger.debug("decrypted %d chunks (%d container bytes)", nonces.issued, consumed)


def encrypt_stream(
    source: IO[bytes],
    sink: IO[bytes],
    password: str | bytes,
    *,
    total_bytes: int = 0,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
    chunk_size: int = MAX_CHUNK_SIZE,
) -> StreamStats:
    """Encrypt everything readable from ``source`` into ``sink``."""

    frames = iter_encrypt(
        source,
        password,
        total_bytes=total_bytes,
        on_progress=on_progress,
        kdf_params=kdf_params,
        chunk_size=chunk_size,
    )
    written = 0
    pieces = 0
    for piece in frames:
        sink.write(piece)
        written += len(piece)
        pieces += 1

    chunks = pieces - 1
    return StreamStats(
        chunks=chunks,
        plaintext_bytes=written - HEADER_LEN - chunks * (FRAME_LEN_SIZE + TAG_LEN),
    )


def decrypt_stream(
    source: IO[bytes],
    sink: IO[bytes],
    password: str | bytes,
    *,
    total_bytes: int = 0,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
    chunk_size: int = MAX_CHUNK_SIZE,
) -> StreamStats:
    """Decrypt a container from ``source`` into ``sink`` chunk by chunk."""

    chunks = 0
    written = 0
    for plaintext in iter_decrypt(
        source,
        password,
        total_bytes=total_bytes,
        on_progress=on_progress,
        kdf_params=kdf_params,
        chunk_size=chunk_size,
    ):
        sink.write(plaintext)
        chunks += 1
        written += len(plaintext)
    return StreamStats(chunks=chunks, plaintext_bytes=written)
