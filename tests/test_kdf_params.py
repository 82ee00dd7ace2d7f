import hashlib

import pytest

from sealstream.container.format import KEY_LEN, PBKDF2_ITERATIONS
from sealstream.crypto.kdf import (
    RecommendedPbkdf2Params,
    derive_key_from_password,
    recommended_params,
)

SALT = bytes(range(16))


def test_recommended_iterations_match_format() -> None:
    assert RecommendedPbkdf2Params.iterations == PBKDF2_ITERATIONS == 100_000
    assert recommended_params() == RecommendedPbkdf2Params


def test_derived_key_matches_reference_pbkdf2() -> None:
    key = derive_key_from_password("correct horse", SALT, iterations=2_000)

    assert len(key) == KEY_LEN
    assert key == hashlib.pbkdf2_hmac("sha256", b"correct horse", SALT, 2_000, dklen=32)


def test_default_iterations_are_applied() -> None:
    key = derive_key_from_password(b"pw", SALT)

    assert key == hashlib.pbkdf2_hmac("sha256", b"pw", SALT, 100_000, dklen=32)


def test_str_and_utf8_bytes_passwords_agree() -> None:
    assert derive_key_from_password("пароль", SALT, iterations=10) == derive_key_from_password(
        "пароль".encode("utf-8"), SALT, iterations=10
    )


def test_salt_and_password_change_key() -> None:
    base = derive_key_from_password("pw", SALT, iterations=10)

    assert derive_key_from_password("pw2", SALT, iterations=10) != base
    assert derive_key_from_password("pw", bytes(16), iterations=10) != base


@pytest.mark.parametrize("salt", [b"", bytes(15), bytes(17)])
def test_rejects_wrong_salt_length(salt: bytes) -> None:
    with pytest.raises(ValueError):
        derive_key_from_password("pw", salt)


def test_rejects_non_positive_iterations() -> None:
    with pytest.raises(ValueError):
        derive_key_from_password("pw", SALT, iterations=0)


def test_trailing_nul_bytes_derive_the_same_key() -> None:
    # HMAC zero-pads keys shorter than the hash block, so PBKDF2 cannot tell
    # "pw" from "pw\x00".
    assert derive_key_from_password("pw", SALT, iterations=10) == derive_key_from_password(
        "pw\x00", SALT, iterations=10
    )
    assert derive_key_from_password("pw", SALT, iterations=10) != derive_key_from_password(
        "pw\x01", SALT, iterations=10
    )
