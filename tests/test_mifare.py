"""Tests for MIFARE Classic geometry helpers."""

import pytest
from mfdread.rfid.errors import InvalidSizeError
from mfdread.rfid.mifare import (
    resolve, interpreted_size, sector_layout, sector_layouts, first_block_number,
    is_sector_trailer, is_extended_sector, parse_sector_trailer,
    BYTES_PER_BLOCK, SECTOR_COUNTS,
)


class TestResolve:
    def test_valid_sizes(self):
        assert resolve(320) == 5
        assert resolve(1024) == 16
        assert resolve(2048) == 32
        assert resolve(4096) == 40

    @pytest.mark.parametrize("size", [0, 16, 319, 321, 512, 1023, 1025, 4095, 4097, 8192])
    def test_invalid_sizes_raise(self, size):
        with pytest.raises(InvalidSizeError) as exc:
            resolve(size)
        assert exc.value.size == size
        assert f"Wrong file size: {size} bytes" in str(exc.value)

    def test_invalid_size_is_value_error(self):
        with pytest.raises(ValueError):
            resolve(100)

    def test_force_1k_truncates_larger_dumps(self):
        assert resolve(4096, force_1k=True) == 16
        assert resolve(2048, force_1k=True) == 16
        # Odd sizes above 1K are accepted too, only the first 1K is read
        assert resolve(1500, force_1k=True) == 16

    def test_force_1k_rejects_short_dumps(self):
        with pytest.raises(InvalidSizeError):
            resolve(320, force_1k=True)

    def test_interpreted_size(self):
        assert interpreted_size(4096) == 4096
        assert interpreted_size(4096, force_1k=True) == 1024
        with pytest.raises(InvalidSizeError):
            interpreted_size(100)


class TestSectorLayout:
    def test_small_sectors(self):
        assert sector_layout(0) == (0, 4, 16)
        assert sector_layout(1) == (64, 4, 16)
        assert sector_layout(15) == (960, 4, 16)
        assert sector_layout(31) == (1984, 4, 16)

    def test_extended_sectors(self):
        assert sector_layout(32) == (2048, 16, 16)
        assert sector_layout(33) == (2304, 16, 16)
        assert sector_layout(39) == (2048 + 7 * 256, 16, 16)

    def test_layout_properties(self):
        small = sector_layout(2)
        assert small.size == 64
        assert small.trailer_offset == 128 + 48
        assert small.extended is False

        big = sector_layout(32)
        assert big.size == 256
        assert big.trailer_offset == 2048 + 240
        assert big.extended is True

    def test_out_of_range_raises(self):
        with pytest.raises(ValueError):
            sector_layout(-1)
        with pytest.raises(ValueError):
            sector_layout(40)

    def test_layouts_cover_whole_dump(self):
        for size in SECTOR_COUNTS:
            layouts = sector_layouts(size)
            assert layouts[0].base_offset == 0
            for prev, nxt in zip(layouts, layouts[1:]):
                assert prev.base_offset + prev.size == nxt.base_offset
            last = layouts[-1]
            assert last.base_offset + last.size == size
            assert all(l.block_size == BYTES_PER_BLOCK for l in layouts)


class TestBlockMapping:
    def test_first_block_number(self):
        assert first_block_number(0) == 0
        assert first_block_number(1) == 4
        assert first_block_number(31) == 124
        assert first_block_number(32) == 128
        assert first_block_number(33) == 144

    def test_is_sector_trailer(self):
        assert is_sector_trailer(0, 3) is True
        assert is_sector_trailer(0, 0) is False
        assert is_sector_trailer(32, 3) is False
        assert is_sector_trailer(32, 15) is True

    def test_is_extended_sector(self):
        assert is_extended_sector(31) is False
        assert is_extended_sector(32) is True


class TestParseSectorTrailer:
    def test_valid_trailer(self):
        # Key A (6 bytes) + access bits (4 bytes) + Key B (6 bytes)
        data = bytes(range(16))
        result = parse_sector_trailer(data)
        assert result.key_a == bytes([0, 1, 2, 3, 4, 5])
        assert result.access_bits == bytes([6, 7, 8, 9])
        assert result.key_b == bytes([10, 11, 12, 13, 14, 15])

    def test_invalid_length_raises(self):
        with pytest.raises(ValueError):
            parse_sector_trailer(bytes(10))
