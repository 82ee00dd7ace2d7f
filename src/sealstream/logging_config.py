"""Logging setup for the command line and the HTTP service."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: int = logging.WARNING, *, console: Console | None = None) -> None:
    # stderr only; stdout may carry container or plaintext bytes.
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=console or Console(stderr=True), show_path=False)],
        force=True,
    )
