"""16x16x16 block sections.

A section holds exactly 4096 block references. They are stored the way they
are on disk: a palette of shared ``Block`` instances plus one palette index per
cell, in linear order ``(y << 8) | (z << 4) | x``.
"""

from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .blocks import Block
from .constants import (
    BLOCKS_PER_SECTION,
    MAX_PALETTE_SIZE,
    index_block,
    is_within_section,
    x_from_index,
    y_from_index,
    z_from_index,
)


class Section:
    """A 16x16x16 cube of blocks within a chunk.

    Attributes:
        palette: Distinct blocks referenced by the section, in palette order
    """

    def __init__(self, palette: Sequence[Block], indices: Optional[np.ndarray] = None):
        if not palette:
            raise ValueError("Section palette must not be empty")
        if len(palette) > MAX_PALETTE_SIZE:
            raise ValueError(f"Section palette holds {len(palette)} entries, at most {MAX_PALETTE_SIZE} allowed")
        if indices is None:
            indices = np.zeros(BLOCKS_PER_SECTION, dtype=np.uint16)
        indices = np.array(indices, dtype=np.uint16)
        if indices.shape != (BLOCKS_PER_SECTION,):
            raise ValueError(f"Expected {BLOCKS_PER_SECTION} indices, got {indices.size}")
        if int(indices.max()) >= len(palette):
            raise ValueError(f"Index {int(indices.max())} outside palette of {len(palette)}")
        self._palette: List[Block] = list(palette)
        self._indices = indices

    @classmethod
    def filled(cls, block: Block) -> "Section":
        """Create a section where every cell is the same block."""
        return cls([block])

    @classmethod
    def from_blocks(cls, blocks: Sequence[Block]) -> "Section":
        """Create a section from 4096 blocks in linear order."""
        if len(blocks) != BLOCKS_PER_SECTION:
            raise ValueError(f"Expected {BLOCKS_PER_SECTION} blocks, got {len(blocks)}")
        palette: List[Block] = []
        lookup = {}
        indices = np.empty(BLOCKS_PER_SECTION, dtype=np.uint16)
        for i, block in enumerate(blocks):
            idx = lookup.get(block)
            if idx is None:
                idx = lookup[block] = len(palette)
                palette.append(block)
            indices[i] = idx
        return cls(palette, indices)

    @property
    def palette(self) -> Tuple[Block, ...]:
        used = np.unique(self._indices)
        return tuple(dict.fromkeys(self._palette[i] for i in used))

    @property
    def indices(self) -> np.ndarray:
        """Read-only view of the per-cell palette indices."""
        view = self._indices.view()
        view.flags.writeable = False
        return view

    @property
    def blocks(self) -> List[Block]:
        """All 4096 blocks in linear order."""
        palette = self._palette
        return [palette[i] for i in self._indices.tolist()]

    def get(self, x: int, y: int, z: int) -> Optional[Block]:
        """Get block at local coordinates, or None if out of bounds."""
        if not is_within_section(x, y, z):
            return None
        return self._palette[self._indices[index_block(x, y, z)]]

    def get_by_index(self, index: int) -> Optional[Block]:
        """Get block by linear index, or None if out of bounds."""
        if not 0 <= index < BLOCKS_PER_SECTION:
            return None
        return self._palette[self._indices[index]]

    def set(self, x: int, y: int, z: int, block: Block) -> None:
        """Set block at local coordinates. Out-of-bounds calls do nothing."""
        if not is_within_section(x, y, z):
            return
        cell = index_block(x, y, z)
        try:
            idx = self._palette.index(block)
        except ValueError:
            if len(self._palette) >= MAX_PALETTE_SIZE:
                self._compact()
            if len(self._palette) >= MAX_PALETTE_SIZE:
                # Still full: every cell holds its own entry, so this cell's entry is reused
                idx = int(self._indices[cell])
                self._palette[idx] = block
            else:
                idx = len(self._palette)
                self._palette.append(block)
        self._indices[cell] = idx

    def _compact(self) -> None:
        """Drop palette entries no cell refers to anymore."""
        used, remapped = np.unique(self._indices, return_inverse=True)
        self._palette = [self._palette[i] for i in used]
        self._indices = remapped.astype(np.uint16).reshape(BLOCKS_PER_SECTION)

    def iter_blocks(self) -> Iterator[Tuple[Tuple[int, int, int], Block]]:
        """Yield ((x, y, z), block) for every cell in linear order."""
        palette = self._palette
        for i, idx in enumerate(self._indices.tolist()):
            yield (x_from_index(i), y_from_index(i), z_from_index(i)), palette[idx]

    def count(self, name: str) -> int:
        """Count the cells holding a block with the given name."""
        matching = [i for i, block in enumerate(self._palette) if block.name == name]
        if not matching:
            return 0
        return int(np.isin(self._indices, matching).sum())

    def is_uniform(self) -> bool:
        """Check if every cell holds the same block."""
        return len(self.palette) == 1

    def is_empty(self) -> bool:
        """Check if the section is entirely air."""
        return all(block.is_air for block in self.palette)

    def __len__(self) -> int:
        return BLOCKS_PER_SECTION

    def __eq__(self, other) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self.blocks == other.blocks

    def __repr__(self) -> str:
        return f"Section(palette={len(self.palette)} blocks)"
