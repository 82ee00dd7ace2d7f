import os
from pathlib import Path

import pytest

from sealstream.container.core import (
    check_container,
    decrypt_file,
    default_decrypt_output,
    default_encrypt_output,
    encrypt_file,
)
from sealstream.container.format import HEADER_LEN
from sealstream.crypto.kdf import Pbkdf2Params
from sealstream.errors import AuthFailure, ContainerFormatError, TruncatedFrame

FAST_KDF = Pbkdf2Params(iterations=1_000)


def _make_container(tmp_path: Path, data: bytes = b"content") -> Path:
    source = tmp_path / "source.bin"
    source.write_bytes(data)
    return encrypt_file(source, tmp_path / "source.bin.enc", "pw", kdf_params=FAST_KDF)


def test_default_output_names() -> None:
    assert default_encrypt_output(Path("dir/report.pdf")) == Path("dir/report.pdf.enc")
    assert default_decrypt_output(Path("dir/report.pdf.enc")) == Path("dir/report.pdf")
    assert default_decrypt_output(Path("dir/report.bin")) == Path("dir/report.bin.dec")
    assert default_decrypt_output(Path(".enc")) == Path(".enc.dec")


def test_encrypt_file_uses_default_output(tmp_path: Path) -> None:
    container = _make_container(tmp_path)

    assert container == tmp_path / "source.bin.enc"
    assert container.exists()


def test_decrypt_file_uses_default_output(tmp_path: Path) -> None:
    container = _make_container(tmp_path, b"hello")
    (tmp_path / "source.bin").unlink()

    restored = decrypt_file(container, None, "pw", kdf_params=FAST_KDF)

    assert restored == tmp_path / "source.bin"
    assert restored.read_bytes() == b"hello"


def test_decrypt_truncated_container(tmp_path: Path) -> None:
    """A damaged container raises a format error and leaves no output behind."""
    container = _make_container(tmp_path, os.urandom(64))
    truncated = tmp_path / "truncated.enc"
    truncated.write_bytes(container.read_bytes()[: HEADER_LEN + 4 + 10])

    with pytest.raises(TruncatedFrame):
        decrypt_file(truncated, tmp_path / "out.bin", password="pw", kdf_params=FAST_KDF)

    assert not (tmp_path / "out.bin").exists()


def test_failed_decrypt_removes_partial_output(tmp_path: Path) -> None:
    container = _make_container(tmp_path, os.urandom(3 * 65536))
    data = bytearray(container.read_bytes())
    data[-1] ^= 0x01
    container.write_bytes(bytes(data))

    with pytest.raises(AuthFailure):
        decrypt_file(container, tmp_path / "out.bin", password="pw", kdf_params=FAST_KDF)

    assert not (tmp_path / "out.bin").exists()


def test_encrypt_does_not_overwrite_without_flag(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"content")

    container = tmp_path / "data.enc"
    container.write_bytes(b"existing")

    with pytest.raises(FileExistsError):
        encrypt_file(source, container, password="pw", overwrite=False)

    assert container.read_bytes() == b"existing"


def test_encrypt_overwrites_with_flag(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"content")
    container = tmp_path / "data.enc"
    container.write_bytes(b"existing")

    encrypt_file(source, container, password="pw", overwrite=True, kdf_params=FAST_KDF)

    assert container.read_bytes() != b"existing"


def test_decrypt_does_not_overwrite_without_flag(tmp_path: Path) -> None:
    container = _make_container(tmp_path)
    output = tmp_path / "output.bin"
    output.write_bytes(b"keep")

    with pytest.raises(FileExistsError):
        decrypt_file(container, output, password="pw", overwrite=False, kdf_params=FAST_KDF)

    assert output.read_bytes() == b"keep"


def test_refuses_to_write_over_its_input(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(b"content")

    with pytest.raises(FileExistsError):
        encrypt_file(source, source, password="pw", overwrite=True)

    assert source.read_bytes() == b"content"


def test_missing_input(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        encrypt_file(tmp_path / "missing.bin", tmp_path / "out.enc", password="pw")
    with pytest.raises(FileNotFoundError):
        decrypt_file(tmp_path / "missing.enc", tmp_path / "out.bin", password="pw")


def test_file_progress_reports_input_size(tmp_path: Path) -> None:
    source = tmp_path / "source.bin"
    source.write_bytes(os.urandom(70_000))
    events: list[tuple[int, int]] = []

    encrypt_file(
        source,
        tmp_path / "out.enc",
        "pw",
        on_progress=lambda p, t: events.append((p, t)),
        kdf_params=FAST_KDF,
    )

    assert events == [(65536, 70_000), (70_000, 70_000)]


def test_check_container_verifies_all_chunks(tmp_path: Path) -> None:
    container = _make_container(tmp_path, os.urandom(2 * 65536 + 1))

    overview, verified = check_container(container, password="pw", kdf_params=FAST_KDF)
    assert overview.frame_count == 3
    assert verified == 3

    _overview, skipped = check_container(container)
    assert skipped == 0


def test_check_container_detects_tampering(tmp_path: Path) -> None:
    container = _make_container(tmp_path, os.urandom(1000))
    data = bytearray(container.read_bytes())
    data[HEADER_LEN + 4 + 500] ^= 0x10
    container.write_bytes(bytes(data))

    structural, _ = check_container(container)
    assert structural.frame_count == 1
    with pytest.raises(AuthFailure):
        check_container(container, password="pw", kdf_params=FAST_KDF)


def test_check_container_reports_truncation(tmp_path: Path) -> None:
    container = _make_container(tmp_path, os.urandom(1000))
    container.write_bytes(container.read_bytes()[:-1])

    with pytest.raises(ContainerFormatError):
        check_container(container)


def test_failed_decrypt_keeps_existing_output(tmp_path: Path) -> None:
    container = _make_container(tmp_path, os.urandom(2 * 65536))
    existing = tmp_path / "report.pdf"
    existing.write_bytes(b"precious existing file")

    with pytest.raises(AuthFailure):
        decrypt_file(container, existing, password="wrong", overwrite=True, kdf_params=FAST_KDF)

    assert existing.read_bytes() == b"precious existing file"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.pdf", "source.bin", "source.bin.enc"]


def test_successful_decrypt_replaces_existing_output(tmp_path: Path) -> None:
    container = _make_container(tmp_path, b"fresh")
    existing = tmp_path / "report.pdf"
    existing.write_bytes(b"stale")

    decrypt_file(container, existing, password="pw", overwrite=True, kdf_params=FAST_KDF)

    assert existing.read_bytes() == b"fresh"
    assert not [p for p in tmp_path.iterdir() if p.name.endswith(".part")]


def test_directory_output_is_refused(tmp_path: Path) -> None:
    container = _make_container(tmp_path)
    target = tmp_path / "restored"
    target.mkdir()
    (target / "keep.txt").write_text("keep")

    with pytest.raises(IsADirectoryError):
        decrypt_file(container, target, password="pw", overwrite=True, kdf_params=FAST_KDF)

    assert (target / "keep.txt").read_text() == "keep"


def test_frame_shorter_than_tag_is_an_auth_failure_everywhere(tmp_path: Path) -> None:
    container = _make_container(tmp_path)
    header = container.read_bytes()[:HEADER_LEN]
    container.write_bytes(header + (3).to_bytes(4, "big") + b"abc")

    overview, _ = check_container(container)
    assert overview.frame_count == 1
    with pytest.raises(AuthFailure):
        check_container(container, password="pw", kdf_params=FAST_KDF)
    with pytest.raises(AuthFailure):
        decrypt_file(container, tmp_path / "out.bin", password="pw", kdf_params=FAST_KDF)
