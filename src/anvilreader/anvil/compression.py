"""Chunk payload decompression.

Compression tags:
- 1: GZip (RFC1952)
- 2: Zlib (RFC1950)
- 3: not compressed
"""

import gzip
import zlib

from .constants import COMPRESSION_GZIP, COMPRESSION_ZLIB, COMPRESSION_NONE
from .errors import UnsupportedCompression, DecompressionFailed

SUPPORTED_COMPRESSION = {
    COMPRESSION_GZIP: "gzip",
    COMPRESSION_ZLIB: "zlib",
    COMPRESSION_NONE: "none",
}


def decompress(tag: int, data: bytes) -> bytes:
    """Decompress a chunk body according to its compression tag.

    Args:
        tag: Compression tag from the chunk header
        data: Compressed body

    Returns:
        The decompressed bytes

    Raises:
        UnsupportedCompression: Unknown tag
        DecompressionFailed: Truncated or corrupt stream
    """
    if tag == COMPRESSION_NONE:
        return bytes(data)
    if tag not in SUPPORTED_COMPRESSION:
        raise UnsupportedCompression(tag)

    try:
        if tag == COMPRESSION_GZIP:
            return gzip.decompress(data)
        return zlib.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionFailed(e) from e
