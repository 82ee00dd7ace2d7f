"""Property-based tests for chunk framing."""

from __future__ import annotations

import io

import pytest
from hypothesis import given, settings, strategies as st

from sealstream.container import format as fmt
from sealstream.container.codec import ChunkCodec
from sealstream.errors import AuthFailure, ContainerFormatError

CHUNK = 256

keys = st.binary(min_size=32, max_size=32)
nonces = st.binary(min_size=12, max_size=12)


@settings(max_examples=100)
@given(key=keys, nonce=nonces, plaintext=st.binary(max_size=CHUNK))
def test_seal_open_preserves_chunk_and_framing(key: bytes, nonce: bytes, plaintext: bytes) -> None:
    codec = ChunkCodec(key, chunk_size=CHUNK)
    frame = codec.seal(nonce, plaintext)

    assert fmt.unpack_frame_len(frame[:4]) == len(plaintext) + fmt.TAG_LEN
    assert codec.open(nonce, frame) == plaintext
    assert codec.read_frame(io.BytesIO(frame)) == frame[4:]


@settings(max_examples=100)
@given(declared=st.integers(min_value=CHUNK + fmt.TAG_LEN + 1, max_value=2**32 - 1))
def test_any_length_above_limit_is_rejected(declared: int) -> None:
    codec = ChunkCodec(bytes(32), chunk_size=CHUNK)

    with pytest.raises(ContainerFormatError):
        codec.read_frame(io.BytesIO(fmt.pack_frame_len(declared)))


@settings(max_examples=150)
@given(key=keys, nonce=nonces, plaintext=st.binary(min_size=1, max_size=64), data=st.data())
def test_single_bit_flip_never_opens(key: bytes, nonce: bytes, plaintext: bytes, data: st.DataObject) -> None:
    codec = ChunkCodec(key, chunk_size=CHUNK)
    frame = bytearray(codec.seal(nonce, plaintext))
    position = data.draw(st.integers(min_value=4, max_value=len(frame) - 1))
    bit = data.draw(st.integers(min_value=0, max_value=7))
    frame[position] ^= 1 << bit

    with pytest.raises(AuthFailure):
        codec.open(nonce, bytes(frame))


@settings(max_examples=100)
@given(garbage=st.binary(max_size=64))
def test_arbitrary_bytes_never_open_silently(garbage: bytes) -> None:
    codec = ChunkCodec(bytes(32), chunk_size=CHUNK)

    with pytest.raises((AuthFailure, ContainerFormatError)):
        codec.open(bytes(12), garbage)
