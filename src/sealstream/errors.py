"""Custom exceptions for sealstream."""


class SealStreamError(Exception):
    """Base exception for sealstream."""


class ContainerFormatError(SealStreamError):
    """Container bytes do not match the expected layout."""


class HeaderTruncated(ContainerFormatError):
    """Source ended inside the container header or a frame length prefix."""


class FrameTooLarge(ContainerFormatError):
    """Frame declares more sealed bytes than a chunk can ever produce."""

    def __init__(self, declared: int, limit: int) -> None:
        self.declared = declared
        self.limit = limit
        super().__init__(f"chunk too large: {declared} > {limit} (corrupted file or attack)")


class TruncatedFrame(ContainerFormatError):
    """Source ended before the declared number of sealed bytes."""


class AuthFailure(SealStreamError):
    """Chunk failed authentication: wrong password or tampered data."""
