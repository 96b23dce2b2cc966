"""Exceptions raised while decoding MIFARE Classic dumps."""

from typing import Optional


class DumpError(ValueError):
    """Base class for all dump decoding errors."""


class InvalidSizeError(DumpError):
    """The dump length does not match any known card size."""

    def __init__(self, size: int, message: Optional[str] = None):
        self.size = size
        super().__init__(
            message
            or f"Wrong file size: {size} bytes. "
            "Only 320, 1024, 2048 or 4096 bytes is allowed."
        )


class InconsistentBitsError(DumpError):
    """The direct and inverted access bits of one slot disagree."""

    def __init__(self, slot: int, direct: int, inverted: int):
        self.slot = slot
        self.direct = direct
        self.inverted = inverted
        super().__init__(
            f"Access bits for slot {slot} are inconsistent: "
            f"direct={direct:03b}, inverted={inverted:03b}"
        )


class DumpFormatError(DumpError):
    """A textual dump (hex, base64, Proxmark3, eml) could not be decoded."""
