"""Container overview helpers (structural walk without a key)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from sealstream.container.format import (
    FRAME_LEN_SIZE,
    HEADER_LEN,
    MAX_CHUNK_SIZE,
    TAG_LEN,
    ContainerHeader,
    max_sealed_len,
    read_exact,
    read_header_from_stream,
    unpack_frame_len,
)
from sealstream.errors import FrameTooLarge, HeaderTruncated, TruncatedFrame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameLayout:
    index: int
    offset: int
    sealed_len: int

    @property
    def plaintext_len(self) -> int:
        # Frames shorter than a tag are located here and rejected by authentication.
        return max(0, self.sealed_len - TAG_LEN)


@dataclass(frozen=True)
class ContainerOverview:
    header: ContainerHeader
    file_size: int
    frames: list[FrameLayout]

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def sealed_len(self) -> int:
        return sum(frame.sealed_len for frame in self.frames)

    @property
    def plaintext_len(self) -> int:
        return sum(frame.plaintext_len for frame in self.frames)


def _walk_frames(handle, file_size: int, chunk_size: int) -> list[FrameLayout]:
    limit = max_sealed_len(chunk_size)
    frames: list[FrameLayout] = []
    offset = HEADER_LEN
    while True:
        prefix = read_exact(handle, FRAME_LEN_SIZE)
        if not prefix:
            break
        if len(prefix) != FRAME_LEN_SIZE:
            raise HeaderTruncated(f"Frame {len(frames)} length prefix truncated")
        sealed_len = unpack_frame_len(prefix)
        if sealed_len > limit:
            raise FrameTooLarge(sealed_len, limit)
        body_offset = offset + FRAME_LEN_SIZE
        if body_offset + sealed_len > file_size:
            raise TruncatedFrame(f"Frame {len(frames)} runs past end of container")
        frames.append(FrameLayout(index=len(frames), offset=offset, sealed_len=sealed_len))
        offset = body_offset + sealed_len
        handle.seek(offset, os.SEEK_SET)
    return frames


def load_overview(container_path: os.PathLike[str] | str, *, chunk_size: int = MAX_CHUNK_SIZE) -> ContainerOverview:
    """Parse the header and locate every frame of a container file."""

    container = Path(container_path)
    if not container.exists():
        raise FileNotFoundError(container)

    file_size = container.stat().st_size
    with container.open("rb") as f:
        header = read_header_from_stream(f)
        frames = _walk_frames(f, file_size, chunk_size)

    logger.debug("container %s: %d frames, %d bytes", container, len(frames), file_size)
    return ContainerOverview(header=header, file_size=file_size, frames=frames)


__all__ = ["ContainerOverview", "FrameLayout", "load_overview"]
