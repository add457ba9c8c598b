import pytest

from anvilreader.anvil import BlockRegistry, World
from anvilreader.anvil.world import find_region_dir
from builders import chunk_nbt, region_of, section_nbt, uniform_chunk_nbt


@pytest.fixture
def world_dir(tmp_path):
    region_dir = tmp_path / "world" / "region"
    region_dir.mkdir(parents=True)

    # Chunk (0, 0): one section at y 0-15, grass at (1, 5, 2)
    indices = [0] * 4096
    indices[(5 << 8) | (2 << 4) | 1] = 1
    grass = chunk_nbt([section_nbt(["minecraft:stone", "minecraft:grass_block"], indices)], y_pos=0)
    (region_dir / "r.0.0.mca").write_bytes(region_of({(0, 0): grass, (31, 31): uniform_chunk_nbt()}))

    # Chunk (-1, -1) lives in region (-1, -1) at local (31, 31)
    (region_dir / "r.-1.-1.mca").write_bytes(region_of({(31, 31): uniform_chunk_nbt("minecraft:sand")}))

    (region_dir / "notes.txt").write_text("not a region")
    (region_dir / "r.a.b.mca").write_bytes(b"")
    return tmp_path / "world"


def test_list_regions(world_dir):
    assert World(world_dir).list_regions() == [(-1, -1), (0, 0)]


def test_region_directory_can_be_given_directly(world_dir):
    world = World(world_dir / "region")
    assert world.region_dir == world_dir / "region"
    assert find_region_dir(world_dir) == world_dir / "region"
    assert world.list_regions() == [(-1, -1), (0, 0)]


def test_get_region_is_cached(world_dir):
    world = World(world_dir)
    region = world.get_region(0, 0)
    assert region is world.get_region(0, 0)
    assert region.count_chunks() == 2

    world.unload()
    assert world.get_region(0, 0) is not region


def test_missing_region(world_dir):
    world = World(world_dir)
    assert world.get_region(5, 5) is None
    assert world.get_chunk(5 * 32, 5 * 32) is None
    assert world.get_block(5 * 512, 0, 5 * 512) is None


def test_get_chunk_by_world_coordinates(world_dir):
    world = World(world_dir)
    assert world.get_chunk(0, 0) is not None
    assert world.get_chunk(31, 31) is not None
    assert world.get_chunk(1, 0) is None
    assert world.get_chunk(-1, -1).get(0, 0, 0).name == "minecraft:sand"


def test_get_block_by_world_coordinates(world_dir):
    world = World(world_dir)
    assert world.get_block(1, 5, 2).name == "minecraft:grass_block"
    assert world.get_block(1, 4, 2).name == "minecraft:stone"
    assert world.get_block(1, 16, 2) is None
    assert world.get_block(-1, 0, -16).name == "minecraft:sand"


def test_iter_regions_shares_registry(world_dir):
    registry = BlockRegistry()
    world = World(world_dir, registry=registry)
    regions = dict(world.iter_regions())

    assert sorted(regions) == [(-1, -1), (0, 0)]
    assert registry.names() == {"minecraft:stone", "minecraft:grass_block", "minecraft:sand"}


def test_parallel_world(world_dir):
    world = World(world_dir, workers=2)
    assert world.get_block(1, 5, 2).name == "minecraft:grass_block"


def test_missing_directory(tmp_path):
    with pytest.raises(ValueError):
        World(tmp_path / "nowhere")
