"""Block states and the registry that shares them.

A block state is a namespaced name ("minecraft:oak_stairs") plus optional
string properties ("facing" -> "north"). Blocks are immutable, so one instance
can back every cell of every section that uses it: the registry hands out a
single shared ``Block`` per distinct (name, properties) pair.
"""

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

AIR_BLOCKS = ("minecraft:air", "minecraft:cave_air", "minecraft:void_air")

PropertyItems = Tuple[Tuple[str, str], ...]


def _normalize_properties(
    properties: Union[Mapping[str, str], Iterable[Tuple[str, str]], None]
) -> Optional[PropertyItems]:
    if properties is None:
        return None
    items = properties.items() if isinstance(properties, Mapping) else properties
    return tuple(sorted((str(key), str(value)) for key, value in items))


@dataclass(frozen=True)
class Block:
    """An immutable block state.

    Attributes:
        name: Namespaced block name, e.g. "minecraft:stone"
        properties: Sorted (key, value) pairs, or None when the palette entry
            has no Properties compound
    """
    name: str
    properties: Optional[PropertyItems] = None

    @classmethod
    def of(cls, name: str, properties: Union[Mapping[str, str], None] = None) -> "Block":
        """Create a block from a name and an optional property mapping."""
        return cls(str(name), _normalize_properties(properties))

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a single property value."""
        for prop_key, value in self.properties or ():
            if prop_key == key:
                return value
        return default

    def properties_dict(self) -> Dict[str, str]:
        """Return the properties as a fresh dictionary."""
        return dict(self.properties or ())

    @property
    def is_air(self) -> bool:
        return self.name in AIR_BLOCKS

    def __str__(self) -> str:
        if not self.properties:
            return self.name
        props = ",".join(f"{key}={value}" for key, value in self.properties)
        return f"{self.name}[{props}]"


class BlockRegistry:
    """Interns blocks so equal palette entries share one instance.

    Safe to use from several decoding threads at once.
    """

    def __init__(self):
        self._blocks: Dict[Block, Block] = {}
        self._lock = threading.Lock()

    def intern(self, name: str, properties: Union[Mapping[str, str], None] = None) -> Block:
        """Get the shared block for a name and properties, creating it if needed."""
        block = Block.of(name, properties)
        shared = self._blocks.get(block)
        if shared is not None:
            return shared
        with self._lock:
            return self._blocks.setdefault(block, block)

    def get(self, name: str, properties: Union[Mapping[str, str], None] = None) -> Optional[Block]:
        """Get a previously interned block without creating it."""
        return self._blocks.get(Block.of(name, properties))

    def names(self) -> set:
        """Get the set of distinct block names seen so far."""
        return {block.name for block in self._blocks}

    def __len__(self) -> int:
        return len(self._blocks)

    def __contains__(self, block: Block) -> bool:
        return block in self._blocks
