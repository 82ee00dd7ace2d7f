"""Container layout: fixed header followed by length-prefixed frames.

::

    Salt        16 bytes, random
    BaseNonce   12 bytes, random
    repeated {
        FrameLen     4 bytes, big-endian, length of SealedChunk
        SealedChunk  FrameLen bytes (ciphertext + 16-byte tag)
    }

There is no magic, version, chunk count or end marker. End of the source is
the only termination signal.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from struct import Struct

from sealstream.crypto.aead import KEY_LEN, NONCE_LEN, TAG_LEN
from sealstream.crypto.kdf import DEFAULT_ITERATIONS, SALT_LEN
from sealstream.errors import HeaderTruncated

PBKDF2_ITERATIONS = DEFAULT_ITERATIONS
HEADER_LEN = SALT_LEN + NONCE_LEN
FRAME_LEN_SIZE = 4
MAX_CHUNK_SIZE = 64 * 1024
MAX_SEALED_CHUNK_LEN = MAX_CHUNK_SIZE + TAG_LEN

_HEADER_STRUCT = Struct(f">{SALT_LEN}s{NONCE_LEN}s")
_FRAME_LEN_STRUCT = Struct(">I")

__all__ = [
    "FRAME_LEN_SIZE",
    "HEADER_LEN",
    "KEY_LEN",
    "MAX_CHUNK_SIZE",
    "MAX_SEALED_CHUNK_LEN",
    "NONCE_LEN",
    "PBKDF2_ITERATIONS",
    "SALT_LEN",
    "TAG_LEN",
    "ContainerHeader",
    "build_header",
    "max_sealed_len",
    "pack_frame_len",
    "parse_header",
    "read_exact",
    "read_header_from_stream",
    "sealed_container_size",
    "unpack_frame_len",
    "validate_chunk_size",
]


@dataclass(frozen=True)
class ContainerHeader:
    salt: bytes
    base_nonce: bytes

    @classmethod
    def generate(cls) -> ContainerHeader:
        """Fresh salt and base nonce from the OS CSPRNG."""
        return cls(salt=os.urandom(SALT_LEN), base_nonce=os.urandom(NONCE_LEN))

    def to_bytes(self) -> bytes:
        return build_header(self.salt, self.base_nonce)


def validate_chunk_size(chunk_size: int) -> int:
    if not (1 <= chunk_size <= MAX_CHUNK_SIZE):
        raise ValueError(f"Chunk size must be between 1 and {MAX_CHUNK_SIZE}, got {chunk_size}")
    return chunk_size


def max_sealed_len(chunk_size: int = MAX_CHUNK_SIZE) -> int:
    """Largest sealed-chunk length a frame may declare for this chunk size."""
    return validate_chunk_size(chunk_size) + TAG_LEN


def build_header(salt: bytes, base_nonce: bytes) -> bytes:
    if len(salt) != SALT_LEN:
        raise ValueError(f"Salt must be {SALT_LEN} bytes long, got {len(salt)}")
    if len(base_nonce) != NONCE_LEN:
        raise ValueError(f"Nonce must be {NONCE_LEN} bytes long, got {len(base_nonce)}")
    return _HEADER_STRUCT.pack(salt, base_nonce)


def parse_header(data: bytes) -> ContainerHeader:
    if len(data) < HEADER_LEN:
        raise HeaderTruncated(f"Container header needs {HEADER_LEN} bytes, got {len(data)}")
    salt, base_nonce = _HEADER_STRUCT.unpack(data[:HEADER_LEN])
    return ContainerHeader(salt=salt, base_nonce=base_nonce)


def read_exact(source, size: int) -> bytes:
    """Read up to ``size`` bytes, retrying short reads until end of source."""

    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = source.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_header_from_stream(file_obj) -> ContainerHeader:
    """Read and parse the salt and base nonce from a binary stream."""

    return parse_header(read_exact(file_obj, HEADER_LEN))


def pack_frame_len(length: int) -> bytes:
    return _FRAME_LEN_STRUCT.pack(length)


def unpack_frame_len(data: bytes) -> int:
    (length,) = _FRAME_LEN_STRUCT.unpack(data)
    return length


def sealed_container_size(plaintext_len: int, chunk_size: int = MAX_CHUNK_SIZE) -> int:
    """Exact container size for ``plaintext_len`` bytes read in full chunks."""

    validate_chunk_size(chunk_size)
    if plaintext_len < 0:
        raise ValueError("Plaintext length cannot be negative")
    frames = -(-plaintext_len // chunk_size)
    return HEADER_LEN + plaintext_len + frames * (FRAME_LEN_SIZE + TAG_LEN)
