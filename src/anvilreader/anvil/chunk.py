"""Chunk decoding for the Anvil region format.

A chunk is a 16-wide column of 16x16x16 sections stacked bottom to top,
starting at section index ``yPos``.

Chunk payload format (as stored in a region sector run):
- 4 bytes: length of what follows, including the compression byte (big-endian)
- 1 byte: compression tag (1 = gzip, 2 = zlib, 3 = none)
- N bytes: compressed NBT document

Relevant NBT structure:
    yPos: Int                      # bottom section index
    sections: List[Compound]
        block_states: Compound
            palette: List[Compound]
                Name: String
                Properties: Compound (optional)
            data: LongArray        # omitted when the palette has one entry
"""

import logging
import struct
from typing import Iterable, Iterator, List, Optional, Tuple

from nbtlib import Compound, Int, List as ListTag, LongArray

from .blocks import AIR_BLOCKS, Block, BlockRegistry
from .compression import decompress
from .constants import CHUNK_HEADER_SIZE, SECTION_BITS, SECTION_SIZE, SECTION_SIZE_MASK
from .errors import InputTooShort, InvalidField, ParseFailed
from .nbt import PARSE_ERRORS, get_field, parse
from .palette import build_palette, unpack_indices
from .section import Section

logger = logging.getLogger(__name__)

_LENGTH = struct.Struct(">I")


class Chunk:
    """A vertical stack of sections.

    Attributes:
        y_pos: Section index of the bottom section (in 16-block units)
        sections: Sections ordered bottom to top
        timestamp: Last-modified time from the region header (0 if unknown)
        data_version: DataVersion of the chunk document, if present
        x_pos: Chunk X coordinate stored in the document, if present
        z_pos: Chunk Z coordinate stored in the document, if present
    """

    def __init__(
        self,
        y_pos: int,
        sections: List[Section],
        timestamp: int = 0,
        data_version: Optional[int] = None,
        x_pos: Optional[int] = None,
        z_pos: Optional[int] = None,
    ):
        self.y_pos = y_pos
        self.sections = sections
        self.timestamp = timestamp
        self.data_version = data_version
        self.x_pos = x_pos
        self.z_pos = z_pos

    def get_y_range(self) -> range:
        """Get the half-open range of block Y coordinates covered by the chunk."""
        start = self.y_pos * SECTION_SIZE
        return range(start, start + len(self.sections) * SECTION_SIZE)

    def _locate(self, x: int, y: int, z: int) -> Optional[Tuple[Section, int]]:
        if not (0 <= x < SECTION_SIZE and 0 <= z < SECTION_SIZE and y in self.get_y_range()):
            return None
        local_y = y - self.y_pos * SECTION_SIZE
        return self.sections[local_y >> SECTION_BITS], local_y & SECTION_SIZE_MASK

    def get(self, x: int, y: int, z: int) -> Optional[Block]:
        """Get block at chunk-local x/z (0-15) and world y, or None if out of range."""
        located = self._locate(x, y, z)
        if located is None:
            return None
        section, section_y = located
        return section.get(x, section_y, z)

    def set(self, x: int, y: int, z: int, block: Block) -> None:
        """Set block at chunk-local x/z and world y. Out-of-range calls do nothing."""
        located = self._locate(x, y, z)
        if located is None:
            return
        section, section_y = located
        section.set(x, section_y, z, block)

    def get_section(self, y: int) -> Optional[Section]:
        """Get the section with section index y, or None if out of range."""
        index = y - self.y_pos
        if not 0 <= index < len(self.sections):
            return None
        return self.sections[index]

    def iter_sections(self) -> Iterator[Tuple[int, Section]]:
        """Yield (section index, section) from bottom to top."""
        for i, section in enumerate(self.sections):
            yield self.y_pos + i, section

    def highest_block(self, x: int, z: int, ignore: Iterable[str] = AIR_BLOCKS) -> Optional[int]:
        """Get the Y of the topmost block in a column whose name is not ignored."""
        if not (0 <= x < SECTION_SIZE and 0 <= z < SECTION_SIZE):
            return None
        ignore = set(ignore)
        for section_y, section in reversed(list(self.iter_sections())):
            if all(block.name in ignore for block in section.palette):
                continue
            for local_y in range(SECTION_SIZE - 1, -1, -1):
                if section.get(x, local_y, z).name not in ignore:
                    return section_y * SECTION_SIZE + local_y
        return None

    def __repr__(self) -> str:
        return f"Chunk(y_pos={self.y_pos}, sections={len(self.sections)})"


def read_payload(data: bytes) -> Tuple[int, bytes]:
    """Split a chunk payload into its compression tag and compressed body.

    Args:
        data: Bytes starting at the chunk's first sector

    Returns:
        (compression tag, compressed body)

    Raises:
        InputTooShort: If the header or the declared body does not fit
    """
    if len(data) < CHUNK_HEADER_SIZE:
        raise InputTooShort(CHUNK_HEADER_SIZE, len(data))
    length = _LENGTH.unpack_from(data, 0)[0]
    if len(data) < length + 4:
        raise InputTooShort(length + 4, len(data))
    compression = data[4]
    # The declared length includes the compression byte
    return compression, bytes(data[CHUNK_HEADER_SIZE:length + 4])


def parse_section(section: Compound, registry: Optional[BlockRegistry] = None) -> Section:
    """Decode one entry of the chunk's ``sections`` list."""
    block_states = get_field(section, "block_states", Compound)
    if block_states is None:
        raise InvalidField("block_states")

    entries = get_field(block_states, "palette", ListTag, Compound)
    if entries is None:
        raise InvalidField("palette")
    palette = build_palette(entries, registry)

    if len(palette) == 1:
        return Section.filled(palette[0])

    data = get_field(block_states, "data", LongArray)
    if data is None:
        raise InvalidField("data")
    return Section(palette, unpack_indices(data, len(palette)))


def parse_chunk_nbt(
    root: Compound,
    timestamp: int = 0,
    registry: Optional[BlockRegistry] = None,
) -> Chunk:
    """Assemble a chunk from its decoded NBT document."""
    y_pos = get_field(root, "yPos", Int)
    if y_pos is None:
        raise InvalidField("yPos")
    raw_sections = get_field(root, "sections", ListTag, Compound)
    if raw_sections is None:
        raise InvalidField("sections")

    if registry is None:
        registry = BlockRegistry()
    sections = [parse_section(section, registry) for section in raw_sections]

    return Chunk(
        int(y_pos),
        sections,
        timestamp=timestamp,
        data_version=_optional_int(root, "DataVersion"),
        x_pos=_optional_int(root, "xPos"),
        z_pos=_optional_int(root, "zPos"),
    )


def _optional_int(root: Compound, name: str) -> Optional[int]:
    value = get_field(root, name, Int)
    return None if value is None else int(value)


def parse_chunk(
    data: bytes,
    timestamp: int = 0,
    registry: Optional[BlockRegistry] = None,
) -> Chunk:
    """Decode a chunk payload (header + compressed NBT) into a Chunk.

    Args:
        data: Payload bytes, starting with the 5-byte chunk header
        timestamp: Region timestamp to attach to the chunk
        registry: Registry used to share blocks across sections and chunks

    Returns:
        The decoded chunk

    Raises:
        ChunkParseError: Or InputTooShort, if any stage of the decode fails
    """
    compression, body = read_payload(data)
    document = decompress(compression, body)
    try:
        root = parse(document)
    except PARSE_ERRORS as e:
        raise ParseFailed(e) from e

    chunk = parse_chunk_nbt(root, timestamp=timestamp, registry=registry)
    logger.debug(
        "Decoded chunk: %d sections from y=%d, %d bytes of NBT",
        len(chunk.sections), chunk.y_pos, len(document),
    )
    return chunk
