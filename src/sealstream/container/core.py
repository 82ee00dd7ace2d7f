"""Core high-level operations for file encryption/decryption."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from sealstream.container.overview import ContainerOverview, load_overview
from sealstream.container.stream import (
    ProgressCallback,
    StreamStats,
    decrypt_stream,
    encrypt_stream,
    iter_decrypt,
)
from sealstream.crypto.kdf import Pbkdf2Params

logger = logging.getLogger(__name__)

ENCRYPTED_SUFFIX = ".enc"
DECRYPTED_FALLBACK_SUFFIX = ".dec"

__all__ = [
    "DECRYPTED_FALLBACK_SUFFIX",
    "ENCRYPTED_SUFFIX",
    "check_container",
    "decrypt_file",
    "default_decrypt_output",
    "default_encrypt_output",
    "encrypt_file",
]


def default_encrypt_output(in_path: Path) -> Path:
    """``report.pdf`` -> ``report.pdf.enc``."""
    return in_path.with_name(in_path.name + ENCRYPTED_SUFFIX)


def default_decrypt_output(in_path: Path) -> Path:
    """``report.pdf.enc`` -> ``report.pdf``; anything else gets ``.dec`` appended."""
    name = in_path.name
    if name.endswith(ENCRYPTED_SUFFIX) and len(name) > len(ENCRYPTED_SUFFIX):
        return in_path.with_name(name[: -len(ENCRYPTED_SUFFIX)])
    return in_path.with_name(name + DECRYPTED_FALLBACK_SUFFIX)


def _ensure_output(path: Path, overwrite: bool) -> None:
    if path.is_dir():
        raise IsADirectoryError(f"Output path is a directory: {path}")
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)


def _run_to_file(in_path: Path, out_path: Path, overwrite: bool, run) -> StreamStats:
    """Run ``run(source, sink, total)`` into a sibling temp file, then move it into place.

    An existing ``out_path`` is only replaced once the whole operation has
    succeeded; on any failure it is left untouched and the temp file removed.
    """

    if not in_path.is_file():
        raise FileNotFoundError(in_path)
    if in_path.resolve() == out_path.resolve():
        raise FileExistsError(f"Input and output are the same file: {in_path}")
    _ensure_output(out_path, overwrite)

    total = in_path.stat().st_size
    fd, partial_name = tempfile.mkstemp(prefix=f".{out_path.name}.", suffix=".part", dir=out_path.parent)
    partial = Path(partial_name)
    try:
        with os.fdopen(fd, "wb") as sink, in_path.open("rb") as source:
            stats = run(source, sink, total)
        if not overwrite and out_path.exists():
            raise FileExistsError(f"Refusing to overwrite existing file: {out_path}")
        os.replace(partial, out_path)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    return stats


def encrypt_file(
    in_path: os.PathLike[str] | str,
    out_path: os.PathLike[str] | str | None,
    password: str | bytes,
    *,
    overwrite: bool = False,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
) -> Path:
    """Encrypt a file into a container and return the container path."""

    source_path = Path(in_path)
    target = Path(out_path) if out_path is not None else default_encrypt_output(source_path)

    stats = _run_to_file(
        source_path,
        target,
        overwrite,
        lambda source, sink, total: encrypt_stream(
            source, sink, password, total_bytes=total, on_progress=on_progress, kdf_params=kdf_params
        ),
    )
    logger.info("encrypted %s -> %s (%d chunks)", source_path, target, stats.chunks)
    return target


def decrypt_file(
    in_path: os.PathLike[str] | str,
    out_path: os.PathLike[str] | str | None,
    password: str | bytes,
    *,
    overwrite: bool = False,
    on_progress: Optional[ProgressCallback] = None,
    kdf_params: Pbkdf2Params | None = None,
) -> Path:
    """Decrypt a container into a file and return the plaintext path.

    On failure an existing output file is left as it was and nothing partial
    remains on disk.
    """

    container = Path(in_path)
    target = Path(out_path) if out_path is not None else default_decrypt_output(container)

    stats = _run_to_file(
        container,
        target,
        overwrite,
        lambda source, sink, total: decrypt_stream(
            source, sink, password, total_bytes=total, on_progress=on_progress, kdf_params=kdf_params
        ),
    )
    logger.info("decrypted %s -> %s (%d chunks)", container, target, stats.chunks)
    return target


def check_container(
    container_path: os.PathLike[str] | str,
    *,
    password: str | bytes | None = None,
    kdf_params: Pbkdf2Params | None = None,
    on_progress: Optional[ProgressCallback] = None,
) -> tuple[ContainerOverview, int]:
    """Validate container structure and, with a password, authenticate every chunk.

    Returns the overview and the number of chunks whose tags were verified
    (zero when no password is given). No plaintext is written anywhere.
    """

    overview = load_overview(container_path)
    if password is None:
        return overview, 0

    verified = 0
    with Path(container_path).open("rb") as f:
        for _plaintext in iter_decrypt(
            f,
            password,
            total_bytes=overview.file_size,
            on_progress=on_progress,
            kdf_params=kdf_params,
        ):
            verified += 1
    return overview, verified
