"""Zeroizable buffers for derived key material.

A stream operation keeps its derived key in a :class:`SecureBuffer` for exactly
as long as the operation runs. The buffer is locked in RAM where ``mlock`` is
available and is overwritten with zeros when the operation ends.
"""
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import platform

logger = logging.getLogger(__name__)

_libc: ctypes.CDLL | None = None

if platform.system() != "Windows":
    try:
        _libc_name = ctypes.util.find_library("c")
        if _libc_name:
            _libc = ctypes.CDLL(_libc_name, use_errno=True)
    except OSError:
        _libc = None


def mlock_available() -> bool:
    """Return True if mlock can be attempted on this platform."""
    return _libc is not None


def _address_of(buffer: bytearray) -> int:
    return ctypes.addressof((ctypes.c_char * len(buffer)).from_buffer(buffer))


class SecureBuffer:
    """Fixed-size key buffer that is wiped on close.

    Usage::

        with SecureBuffer.from_bytes(derive_key(...)) as key:
            cipher = AesGcmEncryptor(key)
        # key is all zeros here
    """

    def __init__(self, size: int) -> None:
        self._buffer = bytearray(size)
        self._locked = False
        if size and _libc is not None:
            if _libc.mlock(_address_of(self._buffer), size) == 0:
                self._locked = True
            else:
                logger.debug("mlock failed (errno=%d), key buffer is not locked", ctypes.get_errno())

    @classmethod
    def from_bytes(cls, data: bytes) -> SecureBuffer:
        secure = cls(len(data))
        secure._buffer[:] = data
        return secure

    def __enter__(self) -> bytearray:
        return self._buffer

    def __exit__(self, *args: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def buffer(self) -> bytearray:
        return self._buffer

    def close(self) -> None:
        """Zero the buffer and release the memory lock."""
        secure_zeroize(self._buffer)
        if self._locked and _libc is not None:
            _libc.munlock(_address_of(self._buffer), len(self._buffer))
            self._locked = False


def secure_zeroize(data: bytearray | None) -> None:
    """Overwrite a bytearray with zeros in place."""
    if data is None:
        return
    for i in range(len(data)):
        data[i] = 0
