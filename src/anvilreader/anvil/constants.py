"""Constants for the Anvil region format."""

# Section dimensions
SECTION_BITS = 4
SECTION_SIZE = 16  # 16x16x16 blocks
SECTION_SIZE_MASK = 15
BLOCKS_PER_SECTION = 4096  # 16*16*16

# Region file format
REGION_SIZE = 32  # 32x32 chunks per region
REGION_SIZE_MASK = 31
CHUNKS_PER_REGION = 1024  # 32*32
SECTOR_SIZE = 4096
SECTOR_SHIFT = 12
LOCATION_TABLE_SIZE = 4096  # 1024 x 4-byte location entries
TIMESTAMP_TABLE_SIZE = 4096  # 1024 x 4-byte timestamps
HEADER_SIZE = LOCATION_TABLE_SIZE + TIMESTAMP_TABLE_SIZE

# Chunk payload framing: 4-byte length + 1-byte compression tag
CHUNK_HEADER_SIZE = 5

# Compression tags
COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3

# Palettes
MIN_BITS_PER_INDEX = 4
MAX_PALETTE_SIZE = BLOCKS_PER_SECTION
WORD_BITS = 64

# Region file naming
REGION_FILE_SUFFIX = ".mca"


def index_block(x: int, y: int, z: int) -> int:
    """Calculate block index within a section from local x,y,z coordinates.

    Y occupies bits 8-11, Z occupies bits 4-7, X occupies bits 0-3.
    """
    return (y & 0xF) << 8 | (z & 0xF) << 4 | (x & 0xF)


def x_from_index(index: int) -> int:
    """Extract x coordinate from block index."""
    return index & 0xF


def y_from_index(index: int) -> int:
    """Extract y coordinate from block index."""
    return (index >> 8) & 0xF


def z_from_index(index: int) -> int:
    """Extract z coordinate from block index."""
    return (index >> 4) & 0xF


def index_chunk(x: int, z: int) -> int:
    """Calculate the region cell index of a chunk from local x,z coordinates."""
    return (z & REGION_SIZE_MASK) * REGION_SIZE + (x & REGION_SIZE_MASK)


def x_from_chunk_index(index: int) -> int:
    """Extract local chunk x from a region cell index."""
    return index % REGION_SIZE


def z_from_chunk_index(index: int) -> int:
    """Extract local chunk z from a region cell index."""
    return index // REGION_SIZE


def is_within_section(x: int, y: int, z: int) -> bool:
    """Check if local coordinates are inside a section (0-15)."""
    return 0 <= x < SECTION_SIZE and 0 <= y < SECTION_SIZE and 0 <= z < SECTION_SIZE


def is_within_region(x: int, z: int) -> bool:
    """Check if local chunk coordinates are inside a region (0-31)."""
    return 0 <= x < REGION_SIZE and 0 <= z < REGION_SIZE


def chunk_coordinate(block: int) -> int:
    """Calculate chunk coordinate from block coordinate."""
    return block >> SECTION_BITS
