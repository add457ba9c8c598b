"""Region file handling for the Anvil world format.

Region files ("r.<x>.<z>.mca") hold up to 32x32 chunks:
- Bytes 0-4095: location table, 1024 x 4-byte entries (x + z*32 order)
    - 3 bytes: sector offset from the start of the file (big-endian)
    - 1 byte: sector count
- Bytes 4096-8191: timestamp table, 1024 x 4-byte big-endian timestamps
- Remainder: chunk payloads, aligned to 4096-byte sectors

Chunk position within a region is calculated as: (chunk_x % 32, chunk_z % 32)

A cell with offset, sector count and timestamp all zero holds no chunk. Cells
that fail to decode are reported absent; the failure is kept in
``Region.errors``.
"""

import logging
import struct
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .blocks import BlockRegistry
from .chunk import Chunk, parse_chunk
from .constants import (
    CHUNKS_PER_REGION,
    HEADER_SIZE,
    LOCATION_TABLE_SIZE,
    REGION_SIZE,
    SECTOR_SHIFT,
    SECTOR_SIZE,
    index_chunk,
    is_within_region,
    x_from_chunk_index,
    z_from_chunk_index,
)
from .errors import AnvilError, InputInvalidSize, InputTooShort

logger = logging.getLogger(__name__)

_TABLE = struct.Struct(">1024I")


def chunk_to_region_coords(chunk_x: int, chunk_z: int) -> Tuple[int, int]:
    """Convert chunk coordinates to region coordinates."""
    region_x = chunk_x >> 5  # // 32
    region_z = chunk_z >> 5
    return region_x, region_z


def chunk_to_local_coords(chunk_x: int, chunk_z: int) -> Tuple[int, int]:
    """Convert chunk coordinates to local coordinates within a region."""
    local_x = chunk_x & 0x1F  # % 32
    local_z = chunk_z & 0x1F
    return local_x, local_z


def region_filename(region_x: int, region_z: int) -> str:
    """Get the file name of a region."""
    return f"r.{region_x}.{region_z}.mca"


@dataclass(frozen=True)
class ChunkLocation:
    """One entry of the region header."""
    index: int
    offset: int
    sector_count: int
    timestamp: int

    @property
    def x(self) -> int:
        return x_from_chunk_index(self.index)

    @property
    def z(self) -> int:
        return z_from_chunk_index(self.index)

    @property
    def byte_offset(self) -> int:
        return self.offset << SECTOR_SHIFT

    @property
    def byte_length(self) -> int:
        return self.sector_count << SECTOR_SHIFT

    @property
    def is_absent(self) -> bool:
        return self.offset == 0 and self.sector_count == 0 and self.timestamp == 0


def validate_region_size(size: int) -> None:
    """Check a region buffer length: at least the header, whole sectors."""
    if size < HEADER_SIZE:
        raise InputTooShort(HEADER_SIZE, size)
    if size % SECTOR_SIZE != 0:
        raise InputInvalidSize(size)


def read_locations(data: bytes) -> List[ChunkLocation]:
    """Read the 1024 location entries of a region header.

    Args:
        data: The whole region buffer

    Returns:
        List of 1024 locations in x + z*32 order

    Raises:
        InputTooShort: Buffer shorter than 8192 bytes
        InputInvalidSize: Buffer not a multiple of 4096 bytes
    """
    validate_region_size(len(data))
    entries = _TABLE.unpack_from(data, 0)
    timestamps = _TABLE.unpack_from(data, LOCATION_TABLE_SIZE)
    return [
        ChunkLocation(index, entry >> 8, entry & 0xFF, timestamp)
        for index, (entry, timestamp) in enumerate(zip(entries, timestamps))
    ]


def slice_payload(data: bytes, location: ChunkLocation) -> bytes:
    """Get the sector run of a chunk, failing if it runs past the buffer."""
    start = location.byte_offset
    end = start + location.byte_length
    if end > len(data):
        raise InputTooShort(end, len(data))
    return data[start:end]


class Region:
    """A region containing 32x32 optional chunks.

    Attributes:
        chunks: 1024 chunks (or None) in x + z*32 order
        locations: 1024 header entries in the same order
        errors: Decode failures keyed by (local_x, local_z)
    """

    def __init__(
        self,
        chunks: List[Optional[Chunk]],
        locations: Optional[List[ChunkLocation]] = None,
        errors: Optional[Dict[Tuple[int, int], AnvilError]] = None,
    ):
        if len(chunks) != CHUNKS_PER_REGION:
            raise ValueError(f"Expected {CHUNKS_PER_REGION} chunk slots, got {len(chunks)}")
        if locations is None:
            locations = [ChunkLocation(i, 0, 0, 0) for i in range(CHUNKS_PER_REGION)]
        if len(locations) != CHUNKS_PER_REGION:
            raise ValueError(f"Expected {CHUNKS_PER_REGION} locations, got {len(locations)}")
        self.chunks = list(chunks)
        self.locations = list(locations)
        self.errors = dict(errors or {})

    @classmethod
    def parse_bytes(
        cls,
        data: bytes,
        registry: Optional[BlockRegistry] = None,
        workers: Optional[int] = None,
    ) -> "Region":
        """Decode a whole region buffer.

        Args:
            data: Region file contents
            registry: Registry used to share blocks; a fresh one if omitted
            workers: Decode cells on a thread pool of this size when > 1

        Returns:
            The decoded region

        Raises:
            InputTooShort: Buffer shorter than the 8192-byte header
            InputInvalidSize: Buffer not a multiple of 4096 bytes
        """
        locations = read_locations(data)
        if registry is None:
            registry = BlockRegistry()
        view = memoryview(data)

        def decode(location: ChunkLocation) -> Union[Chunk, AnvilError, None]:
            if location.is_absent:
                return None
            try:
                payload = slice_payload(view, location)
                return parse_chunk(payload, timestamp=location.timestamp, registry=registry)
            except AnvilError as e:
                return e

        if workers is not None and workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(decode, locations))
        else:
            results = [decode(location) for location in locations]

        chunks: List[Optional[Chunk]] = []
        errors: Dict[Tuple[int, int], AnvilError] = {}
        for location, result in zip(locations, results):
            if isinstance(result, AnvilError):
                logger.warning("Chunk (%d, %d) could not be decoded: %s", location.x, location.z, result)
                errors[(location.x, location.z)] = result
                result = None
            chunks.append(result)

        region = cls(chunks, locations, errors)
        logger.debug(
            "Parsed region: %d chunks present, %d failed, %d bytes",
            region.count_chunks(), len(errors), len(data),
        )
        return region

    @classmethod
    def from_file(
        cls,
        filepath: Union[str, Path],
        registry: Optional[BlockRegistry] = None,
        workers: Optional[int] = None,
    ) -> "Region":
        """Read and decode a region file from disk."""
        filepath = Path(filepath)
        logger.debug("Reading region file %s", filepath)
        return cls.parse_bytes(filepath.read_bytes(), registry=registry, workers=workers)

    def count_chunks(self) -> int:
        """Count the cells holding a decoded chunk."""
        return sum(1 for chunk in self.chunks if chunk is not None)

    def get_chunk(self, x: int, z: int) -> Optional[Chunk]:
        """Get chunk by local coordinates (0-31), or None if absent or out of range."""
        if not is_within_region(x, z):
            return None
        return self.chunks[index_chunk(x, z)]

    def get_location(self, x: int, z: int) -> Optional[ChunkLocation]:
        """Get the header entry for local coordinates (0-31)."""
        if not is_within_region(x, z):
            return None
        return self.locations[index_chunk(x, z)]

    def iter_chunks(self) -> Iterator[Tuple[Tuple[int, int], Chunk]]:
        """Yield ((local_x, local_z), chunk) for every present chunk."""
        for index, chunk in enumerate(self.chunks):
            if chunk is not None:
                yield (x_from_chunk_index(index), z_from_chunk_index(index)), chunk

    def __len__(self) -> int:
        return REGION_SIZE * REGION_SIZE
