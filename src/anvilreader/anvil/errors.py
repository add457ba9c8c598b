"""Exceptions raised while decoding regions and chunks.

Everything derives from :class:`AnvilError`, itself a ``ValueError``, so
callers that only care about "bad input" can catch ``ValueError``.

Region-level failures (:class:`InputTooShort`, :class:`InputInvalidSize` on the
8192-byte header) propagate out of ``Region.parse_bytes``. Everything raised
while decoding a single chunk is caught at the region boundary and the cell is
reported absent.
"""

from typing import Optional


class AnvilError(ValueError):
    """Base class for all decoding errors."""


class InputTooShort(AnvilError):
    """A byte buffer is shorter than its framing requires."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"input too short, expected at least {expected} bytes but got {actual}")


class InputInvalidSize(AnvilError):
    """A region buffer is not a whole number of sectors."""

    def __init__(self, actual: int):
        self.actual = actual
        super().__init__(f"input size ({actual}) is not a multiple of 4096")


class ChunkParseError(AnvilError):
    """Base class for errors that are fatal to one chunk's decode."""


class UnsupportedCompression(ChunkParseError):
    def __init__(self, tag: int):
        self.tag = tag
        super().__init__(f"compression format {tag} is not supported")


class DecompressionFailed(ChunkParseError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"failed to decompress the data: {cause}")


class ParseFailed(ChunkParseError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"failed to parse the chunk: {cause}")


class InvalidField(ChunkParseError):
    """A required NBT field is missing or has the wrong type."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"the field {name!r} is missing or has an invalid type")


class InvalidPalette(ChunkParseError):
    def __init__(self, length: int):
        self.length = length
        super().__init__(f"the block palette is invalid (length {length})")


class InvalidSectionData(ChunkParseError):
    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        message = "the section data is invalid"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
