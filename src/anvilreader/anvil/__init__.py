"""Anvil world format handling."""

from .constants import (
    SECTION_SIZE,
    BLOCKS_PER_SECTION,
    REGION_SIZE,
    CHUNKS_PER_REGION,
    SECTOR_SIZE,
    HEADER_SIZE,
    COMPRESSION_GZIP,
    COMPRESSION_ZLIB,
    COMPRESSION_NONE,
    index_block,
    index_chunk,
    x_from_index,
    y_from_index,
    z_from_index,
)
from .errors import (
    AnvilError,
    InputTooShort,
    InputInvalidSize,
    ChunkParseError,
    UnsupportedCompression,
    DecompressionFailed,
    ParseFailed,
    InvalidField,
    InvalidPalette,
    InvalidSectionData,
)
from .compression import decompress
from .blocks import Block, BlockRegistry
from .palette import bits_per_index, unpack_indices, build_palette
from .section import Section
from .chunk import Chunk, parse_chunk, parse_chunk_nbt
from .region import (
    Region,
    ChunkLocation,
    read_locations,
    chunk_to_region_coords,
    chunk_to_local_coords,
    region_filename,
)
from .world import World

__all__ = [
    # Constants
    "SECTION_SIZE",
    "BLOCKS_PER_SECTION",
    "REGION_SIZE",
    "CHUNKS_PER_REGION",
    "SECTOR_SIZE",
    "HEADER_SIZE",
    "COMPRESSION_GZIP",
    "COMPRESSION_ZLIB",
    "COMPRESSION_NONE",
    "index_block",
    "index_chunk",
    "x_from_index",
    "y_from_index",
    "z_from_index",
    # Errors
    "AnvilError",
    "InputTooShort",
    "InputInvalidSize",
    "ChunkParseError",
    "UnsupportedCompression",
    "DecompressionFailed",
    "ParseFailed",
    "InvalidField",
    "InvalidPalette",
    "InvalidSectionData",
    # Compression
    "decompress",
    # Blocks
    "Block",
    "BlockRegistry",
    # Palette
    "bits_per_index",
    "unpack_indices",
    "build_palette",
    # Section
    "Section",
    # Chunk
    "Chunk",
    "parse_chunk",
    "parse_chunk_nbt",
    # Region
    "Region",
    "ChunkLocation",
    "read_locations",
    "chunk_to_region_coords",
    "chunk_to_local_coords",
    "region_filename",
    # World
    "World",
]
