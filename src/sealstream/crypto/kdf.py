"""Key derivation helpers using PBKDF2-HMAC-SHA256."""

from __future__ import annotations

from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

DEFAULT_ITERATIONS = 100_000
DERIVED_KEY_LEN = 32
SALT_LEN = 16


@dataclass(frozen=True)
class Pbkdf2Params:
    iterations: int = DEFAULT_ITERATIONS


def _password_bytes(password: str | bytes) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


def derive_key_from_password(
    password: str | bytes,
    salt: bytes,
    *,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive a 256-bit key from password and salt."""

    if len(salt) != SALT_LEN:
        raise ValueError(f"Salt must be {SALT_LEN} bytes long, got {len(salt)}")
    if iterations < 1:
        raise ValueError(f"Iteration count must be positive, got {iterations}")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_LEN,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(_password_bytes(password))


def recommended_params() -> Pbkdf2Params:
    """Return the PBKDF2 parameters every container is written with."""

    return Pbkdf2Params()


# The iteration count is part of the container format: it is not stored in the
# header, so both sides have to agree on it out of band.
RecommendedPbkdf2Params = Pbkdf2Params()
