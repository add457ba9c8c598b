import logging
import struct
import zlib
from pathlib import Path

import pytest

from anvilreader.anvil import (
    Block,
    BlockRegistry,
    InputInvalidSize,
    InputTooShort,
    InvalidSectionData,
    ParseFailed,
    Region,
    UnsupportedCompression,
    chunk_to_local_coords,
    chunk_to_region_coords,
    read_locations,
    region_filename,
)
from builders import (
    block_names,
    build_region,
    chunk_nbt,
    chunk_payload,
    linear_indices,
    nested_list_document,
    pack_indices,
    region_of,
    section_nbt,
    uniform_chunk_nbt,
)

FIXTURE = Path(__file__).parent / "fixtures" / "r.0.0.mca"


def test_empty_region():
    region = Region.parse_bytes(b"\x00" * 8192)
    assert region.count_chunks() == 0
    assert len(region) == 1024
    assert region.errors == {}
    for x in range(32):
        for z in range(32):
            assert region.get_chunk(x, z) is None
            assert region.get_location(x, z).is_absent


@pytest.mark.parametrize("size", [0, 100, 4096, 8191])
def test_buffer_shorter_than_header(size):
    with pytest.raises(InputTooShort) as info:
        Region.parse_bytes(b"\x00" * size)
    assert (info.value.expected, info.value.actual) == (8192, size)


@pytest.mark.parametrize("size", [8193, 10000, 12287])
def test_buffer_not_sector_aligned(size):
    with pytest.raises(InputInvalidSize):
        Region.parse_bytes(b"\x00" * size)


def test_chunks_land_in_their_cells():
    region = Region.parse_bytes(region_of({
        (0, 0): uniform_chunk_nbt("minecraft:stone"),
        (31, 0): uniform_chunk_nbt("minecraft:dirt"),
        (5, 17): uniform_chunk_nbt("minecraft:sand"),
    }))

    assert region.count_chunks() == 3
    assert region.get_chunk(0, 0).get(0, 0, 0).name == "minecraft:stone"
    assert region.get_chunk(31, 0).get(0, 0, 0).name == "minecraft:dirt"
    assert region.get_chunk(5, 17).get(0, 0, 0).name == "minecraft:sand"
    assert region.chunks[5 + 17 * 32] is region.get_chunk(5, 17)
    assert region.get_chunk(17, 5) is None
    assert [pos for pos, _ in region.iter_chunks()] == [(0, 0), (31, 0), (5, 17)]


@pytest.mark.parametrize("x, z", [(-1, 0), (32, 0), (0, 32)])
def test_get_chunk_out_of_range(x, z):
    region = Region.parse_bytes(region_of({(0, 0): uniform_chunk_nbt()}))
    assert region.get_chunk(x, z) is None
    assert region.get_location(x, z) is None


def test_locations_and_timestamps():
    payload = chunk_payload(uniform_chunk_nbt())
    data = build_region({(3, 4): payload}, timestamps={(3, 4): 1690000000})

    location = read_locations(data)[3 + 4 * 32]
    assert (location.x, location.z) == (3, 4)
    assert location.offset == 2
    assert location.sector_count == 1
    assert location.byte_offset == 8192
    assert location.timestamp == 1690000000

    region = Region.parse_bytes(data)
    assert region.get_chunk(3, 4).timestamp == 1690000000


def test_timestamp_only_cell_is_not_absent():
    # A stray timestamp makes the cell present; offset 0 points into the header
    data = build_region({}, timestamps={(1, 1): 12345})
    region = Region.parse_bytes(data)
    assert not region.get_location(1, 1).is_absent
    assert region.get_chunk(1, 1) is None
    assert (1, 1) in region.errors


def test_large_chunk_spans_sectors():
    names = block_names(4096)
    section = section_nbt(names, linear_indices(4096))
    payload = chunk_payload(chunk_nbt([section] * 4, y_pos=0), compression=3)
    assert len(payload) > 4096

    region = Region.parse_bytes(build_region({(2, 2): payload}))
    chunk = region.get_chunk(2, 2)
    assert region.get_location(2, 2).sector_count == -(-len(payload) // 4096)
    assert len(chunk.sections) == 4
    assert chunk.get(0, 63, 0).name in names


def test_out_of_range_index_fails_one_cell(caplog):
    names = block_names(16)
    bad = pack_indices(linear_indices(16), 16)
    bad_chunk = chunk_nbt([section_nbt(names[:15], data=bad)], y_pos=0)
    chunks = {(x, 0): uniform_chunk_nbt() for x in range(8)}
    chunks[(3, 0)] = bad_chunk

    with caplog.at_level(logging.WARNING, logger="anvilreader.anvil.region"):
        region = Region.parse_bytes(region_of(chunks))

    assert region.get_chunk(3, 0) is None
    assert isinstance(region.errors[(3, 0)], InvalidSectionData)
    assert region.count_chunks() == 7
    assert all(region.get_chunk(x, 0) is not None for x in range(8) if x != 3)
    assert "Chunk (3, 0) could not be decoded" in caplog.text


def test_offset_past_end_fails_one_cell():
    data = build_region(
        {(0, 0): chunk_payload(uniform_chunk_nbt())},
        locations={(9, 9): (500, 1)},
        timestamps={(9, 9): 1},
    )
    region = Region.parse_bytes(data)

    assert region.get_chunk(0, 0) is not None
    assert region.get_chunk(9, 9) is None
    assert isinstance(region.errors[(9, 9)], InputTooShort)


def test_bad_compression_fails_one_cell():
    data = build_region({
        (0, 0): chunk_payload(uniform_chunk_nbt()),
        (1, 0): chunk_payload(uniform_chunk_nbt(), compression=9),
    })
    region = Region.parse_bytes(data)

    assert region.count_chunks() == 1
    assert isinstance(region.errors[(1, 0)], UnsupportedCompression)


def deep_chunk_payload() -> bytes:
    body = zlib.compress(nested_list_document(5000))
    return struct.pack(">IB", len(body) + 1, 2) + body


def test_deeply_nested_chunk_fails_one_cell():
    region = Region.parse_bytes(build_region({
        (0, 0): chunk_payload(uniform_chunk_nbt()),
        (1, 0): deep_chunk_payload(),
    }))

    assert region.count_chunks() == 1
    assert region.get_chunk(0, 0) is not None
    assert isinstance(region.errors[(1, 0)], ParseFailed)


def test_deeply_nested_chunk_with_workers():
    data = build_region({(0, 0): chunk_payload(uniform_chunk_nbt()), (1, 0): deep_chunk_payload()})
    region = Region.parse_bytes(data, workers=2)

    assert region.count_chunks() == 1
    assert isinstance(region.errors[(1, 0)], ParseFailed)


def test_truncated_payload_inside_sector():
    payload = chunk_payload(uniform_chunk_nbt())
    # Declared length runs past the single sector the header allots
    broken = struct.pack(">I", 5000) + payload[4:]
    region = Region.parse_bytes(build_region({(0, 0): broken}))
    assert isinstance(region.errors[(0, 0)], InputTooShort)


def test_975_chunk_region():
    payload = chunk_payload(uniform_chunk_nbt(section_count=3, y_pos=-4))
    cells = [(x, z) for z in range(32) for x in range(32)][:975]
    region = Region.parse_bytes(build_region({cell: payload for cell in cells}))

    assert region.count_chunks() == 975
    assert region.errors == {}
    assert all(chunk.sections for _, chunk in region.iter_chunks())


@pytest.mark.skipif(not FIXTURE.exists(), reason="real region fixture not available")
def test_real_region_file():
    region = Region.from_file(FIXTURE)
    assert region.count_chunks() == 975
    assert all(chunk.sections for _, chunk in region.iter_chunks())


def test_parallel_matches_sequential():
    chunks = {(x, z): uniform_chunk_nbt(f"test:block_{x}") for x in range(0, 32, 3) for z in range(0, 32, 5)}
    data = region_of(chunks)

    sequential = Region.parse_bytes(data)
    parallel = Region.parse_bytes(data, workers=4)

    assert parallel.count_chunks() == sequential.count_chunks() == len(chunks)
    for (x, z), chunk in sequential.iter_chunks():
        assert parallel.get_chunk(x, z).get(0, 0, 0) == chunk.get(0, 0, 0)


def test_shared_registry_across_regions():
    registry = BlockRegistry()
    data = region_of({(0, 0): uniform_chunk_nbt(), (1, 1): uniform_chunk_nbt()})
    first = Region.parse_bytes(data, registry=registry)
    second = Region.parse_bytes(data, registry=registry)

    assert first.get_chunk(0, 0).get(0, 0, 0) is second.get_chunk(1, 1).get(0, 0, 0)
    assert registry.get("minecraft:stone") == Block.of("minecraft:stone")


def test_from_file(tmp_path):
    path = tmp_path / "r.0.0.mca"
    path.write_bytes(region_of({(4, 4): uniform_chunk_nbt()}))
    region = Region.from_file(path)
    assert region.get_chunk(4, 4) is not None


def test_region_requires_1024_cells():
    with pytest.raises(ValueError):
        Region([None] * 1023)


@pytest.mark.parametrize("chunk_x, chunk_z, region_xz, local_xz", [
    (0, 0, (0, 0), (0, 0)),
    (31, 32, (0, 1), (31, 0)),
    (-1, -33, (-1, -2), (31, 31)),
])
def test_coordinate_helpers(chunk_x, chunk_z, region_xz, local_xz):
    assert chunk_to_region_coords(chunk_x, chunk_z) == region_xz
    assert chunk_to_local_coords(chunk_x, chunk_z) == local_xz


def test_region_filename():
    assert region_filename(-1, 2) == "r.-1.2.mca"
