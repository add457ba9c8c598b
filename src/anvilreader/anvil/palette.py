"""Section block palettes and packed block-state indices.

Each section stores its blocks as a palette (the distinct block states used)
plus an array of 4096 palette indices packed into 64-bit words:
- Bits per index: max(4, ceil(log2(palette length)))
- Indices are packed from the least significant bit of each word
- An index never spans two words; the leftover high bits of a word are
  padding, e.g. 5-bit indices fit 12 per word with 4 bits of padding
- A palette of length 1 has no index array: the whole section is that block
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
from nbtlib import Compound, String

from .blocks import Block, BlockRegistry
from .constants import (
    BLOCKS_PER_SECTION,
    MAX_PALETTE_SIZE,
    MIN_BITS_PER_INDEX,
    WORD_BITS,
)
from .errors import InvalidField, InvalidPalette, InvalidSectionData
from .nbt import get_field

Palette = Tuple[Block, ...]


def bits_per_index(palette_length: int) -> int:
    """Get the number of bits used per packed index for a palette length."""
    return max(MIN_BITS_PER_INDEX, (palette_length - 1).bit_length())


def indices_per_word(bits: int) -> int:
    """Get how many indices of the given width fit in one 64-bit word."""
    return WORD_BITS // bits


def words_required(bits: int) -> int:
    """Get the number of 64-bit words needed to hold a full section of indices."""
    per_word = indices_per_word(bits)
    return (BLOCKS_PER_SECTION + per_word - 1) // per_word


def validate_palette_length(palette_length: int) -> None:
    """Raise InvalidPalette unless 0 < palette_length <= 4096."""
    if not 0 < palette_length <= MAX_PALETTE_SIZE:
        raise InvalidPalette(palette_length)


def _as_words(data: Sequence[int]) -> np.ndarray:
    """Convert packed words to an int64 array, or uint64 when they only fit unsigned."""
    try:
        return np.asarray(data, dtype=np.int64)
    except OverflowError:
        pass
    except (TypeError, ValueError) as e:
        raise InvalidSectionData(f"packed data is not an array of longs: {e}") from e

    try:
        values = [int(word) for word in data]
    except (TypeError, ValueError) as e:
        raise InvalidSectionData(f"packed data is not an array of longs: {e}") from e
    if min(values) < 0 or max(values) >= 1 << WORD_BITS:
        raise InvalidSectionData("packed words do not fit in 64 bits as either signed or unsigned")
    return np.asarray(values, dtype=np.uint64)


def unpack_indices(data: Sequence[int], palette_length: int) -> np.ndarray:
    """Unpack 4096 palette indices from packed 64-bit words.

    Args:
        data: Packed words (signed or unsigned 64-bit values)
        palette_length: Number of entries in the section palette

    Returns:
        uint16 array of 4096 indices in linear block order

    Raises:
        InvalidPalette: palette_length outside 1..4096
        InvalidSectionData: Too few words, or an index outside the palette
    """
    validate_palette_length(palette_length)
    if palette_length == 1:
        return np.zeros(BLOCKS_PER_SECTION, dtype=np.uint16)

    bits = bits_per_index(palette_length)
    needed = words_required(bits)

    words = _as_words(data)
    if words.ndim != 1 or words.size < needed:
        raise InvalidSectionData(
            f"expected at least {needed} words for {bits}-bit indices, got {words.size}"
        )

    words = np.ascontiguousarray(words[:needed]).view(np.uint64)
    shifts = np.arange(indices_per_word(bits), dtype=np.uint64) * np.uint64(bits)
    mask = np.uint64((1 << bits) - 1)

    # One row per word, one column per index slot; padding bits fall off the top
    indices = ((words[:, np.newaxis] >> shifts) & mask).reshape(-1)[:BLOCKS_PER_SECTION]
    indices = indices.astype(np.uint16)

    out_of_range = indices >= palette_length
    if out_of_range.any():
        position = int(np.argmax(out_of_range))
        raise InvalidSectionData(
            f"index {int(indices[position])} at position {position} "
            f"is outside a palette of {palette_length}"
        )
    return indices


def build_palette(entries: List[Compound], registry: Optional[BlockRegistry] = None) -> Palette:
    """Build a palette from the NBT palette list of a section.

    Args:
        entries: Palette compounds, each with a string ``Name`` and an
            optional ``Properties`` compound
        registry: Registry used to share equal blocks; a private one is
            used when omitted

    Returns:
        Tuple of blocks, in palette order
    """
    validate_palette_length(len(entries))
    if registry is None:
        registry = BlockRegistry()

    palette = []
    for entry in entries:
        name = get_field(entry, "Name", String)
        if name is None:
            raise InvalidField("Name")

        # Optional; anything but a compound is treated as absent
        properties = get_field(entry, "Properties", Compound)
        palette.append(registry.intern(name, properties))
    return tuple(palette)
