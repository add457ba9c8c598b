"""World directory access for Anvil worlds.

World structure:
{world}/
    level.dat
    region/
        r.{X}.{Z}.mca   # Region files, 32x32 chunks each

A ``World`` may also point straight at a directory of region files.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .blocks import Block, BlockRegistry
from .chunk import Chunk
from .constants import REGION_FILE_SUFFIX, SECTION_SIZE_MASK, chunk_coordinate
from .region import Region, chunk_to_local_coords, chunk_to_region_coords, region_filename

logger = logging.getLogger(__name__)

REGION_FILE_PATTERN = re.compile(r"^r\.(-?\d+)\.(-?\d+)\.mca$")


def find_region_dir(path: Path) -> Path:
    """Get the directory holding region files for a world or region path."""
    if (path / "region").is_dir():
        return path / "region"
    return path


class World:
    """Lazily loaded regions of an Anvil world.

    Attributes:
        path: World (or region) directory
        region_dir: Directory the region files are read from
        registry: Block registry shared by every region loaded (None gives
            each region its own)
    """

    def __init__(
        self,
        path: Union[str, Path],
        workers: Optional[int] = None,
        registry: Optional[BlockRegistry] = None,
        region_glob: str = f"r.*.*{REGION_FILE_SUFFIX}",
    ):
        self.path = Path(path)
        if not self.path.is_dir():
            raise ValueError(f"World directory not found: {self.path}")
        self.region_dir = find_region_dir(self.path)
        self.workers = workers
        self.registry = registry
        self.region_glob = region_glob
        self._regions: Dict[Tuple[int, int], Optional[Region]] = {}

    def list_regions(self) -> List[Tuple[int, int]]:
        """List the (region_x, region_z) coordinates of every region file."""
        coords = []
        for path in self.region_dir.glob(self.region_glob):
            match = REGION_FILE_PATTERN.match(path.name)
            if match:
                coords.append((int(match.group(1)), int(match.group(2))))
        return sorted(coords)

    def get_region(self, region_x: int, region_z: int) -> Optional[Region]:
        """Load a region, or None if its file does not exist."""
        key = (region_x, region_z)
        if key not in self._regions:
            filepath = self.region_dir / region_filename(region_x, region_z)
            if filepath.exists():
                self._regions[key] = Region.from_file(filepath, registry=self.registry, workers=self.workers)
            else:
                logger.debug("No region file at %s", filepath)
                self._regions[key] = None
        return self._regions[key]

    def iter_regions(self) -> Iterator[Tuple[Tuple[int, int], Region]]:
        """Yield ((region_x, region_z), region) for every region file."""
        for region_x, region_z in self.list_regions():
            region = self.get_region(region_x, region_z)
            if region is not None:
                yield (region_x, region_z), region

    def get_chunk(self, chunk_x: int, chunk_z: int) -> Optional[Chunk]:
        """Get a chunk by world chunk coordinates."""
        region = self.get_region(*chunk_to_region_coords(chunk_x, chunk_z))
        if region is None:
            return None
        return region.get_chunk(*chunk_to_local_coords(chunk_x, chunk_z))

    def get_block(self, x: int, y: int, z: int) -> Optional[Block]:
        """Get a block by world block coordinates."""
        chunk = self.get_chunk(chunk_coordinate(x), chunk_coordinate(z))
        if chunk is None:
            return None
        return chunk.get(x & SECTION_SIZE_MASK, y, z & SECTION_SIZE_MASK)

    def unload(self) -> None:
        """Forget every loaded region."""
        self._regions.clear()
