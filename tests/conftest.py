import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))

from sealstream.crypto.kdf import Pbkdf2Params  # noqa: E402


@pytest.fixture
def fast_kdf() -> Pbkdf2Params:
    """Low iteration count so tests that derive many keys stay quick."""
    return Pbkdf2Params(iterations=1_000)
