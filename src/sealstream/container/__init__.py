"""Public container API re-exported for external users.

The objects listed in ``__all__`` form the supported public surface for
Python consumers. Everything else in :mod:`sealstream.container` is
considered internal and may change without notice.
"""
from __future__ import annotations

from sealstream.container.codec import ChunkCodec, open_frame, seal_frame
from sealstream.container.core import (
    check_container,
    decrypt_file,
    default_decrypt_output,
    default_encrypt_output,
    encrypt_file,
)
from sealstream.container.format import (
    HEADER_LEN,
    MAX_CHUNK_SIZE,
    MAX_SEALED_CHUNK_LEN,
    NONCE_LEN,
    SALT_LEN,
    TAG_LEN,
    ContainerHeader,
    read_header_from_stream,
    sealed_container_size,
)
from sealstream.container.nonce import NonceSequencer
from sealstream.container.overview import ContainerOverview, FrameLayout, load_overview
from sealstream.container.stream import (
    ProgressCallback,
    StreamStats,
    decrypt_stream,
    encrypt_stream,
    iter_decrypt,
    iter_encrypt,
)
from sealstream.crypto.kdf import Pbkdf2Params

__all__ = [
    "HEADER_LEN",
    "MAX_CHUNK_SIZE",
    "MAX_SEALED_CHUNK_LEN",
    "NONCE_LEN",
    "SALT_LEN",
    "TAG_LEN",
    "ChunkCodec",
    "ContainerHeader",
    "ContainerOverview",
    "FrameLayout",
    "NonceSequencer",
    "Pbkdf2Params",
    "ProgressCallback",
    "StreamStats",
    "check_container",
    "decrypt_file",
    "decrypt_stream",
    "default_decrypt_output",
    "default_encrypt_output",
    "encrypt_file",
    "encrypt_stream",
    "iter_decrypt",
    "iter_encrypt",
    "load_overview",
    "open_frame",
    "read_header_from_stream",
    "seal_frame",
    "sealed_container_size",
]
