"""
MIFARE Classic constants and dump geometry.

Supported card sizes:
- Mini: 5 sectors, 320 bytes
- 1K:   16 sectors, 1024 bytes
- 2K:   32 sectors, 2048 bytes
- 4K:   40 sectors, 4096 bytes

Sectors 0-31 have 4 blocks of 16 bytes (64 bytes per sector).
Sectors 32-39 (4K only) have 16 blocks of 16 bytes (256 bytes per sector)
and start at byte 2048.
The last block of every sector is the sector trailer (Key A + access bits + Key B).
Block 0 of sector 0 holds the manufacturer data (UID, BCC, SAK, ATQA).
"""

from typing import NamedTuple

from .errors import InvalidSizeError

# Block geometry
BYTES_PER_BLOCK = 16
BLOCKS_PER_SECTOR = 4
BLOCKS_PER_EXTENDED_SECTOR = 16
SECTOR_SIZE = BLOCKS_PER_SECTOR * BYTES_PER_BLOCK  # 64
EXTENDED_SECTOR_SIZE = BLOCKS_PER_EXTENDED_SECTOR * BYTES_PER_BLOCK  # 256

# First sector using the 16-block layout, and where it starts in a 4K dump
FIRST_EXTENDED_SECTOR = 32
EXTENDED_AREA_OFFSET = FIRST_EXTENDED_SECTOR * SECTOR_SIZE  # 2048

# Dump length -> sector count
SECTOR_COUNTS = {
    320: 5,
    1024: 16,
    2048: 32,
    4096: 40,
}
MAX_SECTORS = max(SECTOR_COUNTS.values())
MAX_BLOCKS = max(SECTOR_COUNTS) // BYTES_PER_BLOCK  # 256

SIZE_1K = 1024

# Sector trailer layout within a 16-byte block
KEY_A_OFFSET = 0
KEY_A_LENGTH = 6
ACCESS_BITS_OFFSET = 6
ACCESS_BITS_LENGTH = 4
KEY_B_OFFSET = 10
KEY_B_LENGTH = 6


class SectorLayout(NamedTuple):
    """Position and shape of one sector inside a dump."""
    base_offset: int
    block_count: int
    block_size: int

    @property
    def size(self) -> int:
        return self.block_count * self.block_size

    @property
    def trailer_offset(self) -> int:
        return self.base_offset + self.size - self.block_size

    @property
    def extended(self) -> bool:
        return self.block_count == BLOCKS_PER_EXTENDED_SECTOR


class SectorTrailer(NamedTuple):
    key_a: bytes
    access_bits: bytes
    key_b: bytes


def resolve(dump_length: int, force_1k: bool = False) -> int:
    """
    Return the number of sectors for a dump of the given length.

    Args:
        dump_length: Size of the dump in bytes.
        force_1k: Interpret any dump of at least 1024 bytes as a 1K card.

    Raises:
        InvalidSizeError: The length is not a known card size.
    """
    if force_1k:
        # Short buffers are rejected, not zero-padded to 1K
        if dump_length < SIZE_1K:
            raise InvalidSizeError(
                dump_length,
                f"Wrong file size: {dump_length} bytes. "
                f"At least {SIZE_1K} bytes are needed to force 1K format.",
            )
        dump_length = SIZE_1K
    try:
        return SECTOR_COUNTS[dump_length]
    except KeyError:
        raise InvalidSizeError(dump_length) from None


def interpreted_size(dump_length: int, force_1k: bool = False) -> int:
    """Return how many bytes of the dump are actually decoded."""
    resolve(dump_length, force_1k)
    return SIZE_1K if force_1k else dump_length


def is_extended_sector(sector: int) -> bool:
    """Check if a sector uses the 16-block layout."""
    return sector >= FIRST_EXTENDED_SECTOR


def sector_layout(sector: int) -> SectorLayout:
    """Return base offset, block count and block size of a sector."""
    if not 0 <= sector < MAX_SECTORS:
        raise ValueError(f"Sector index must be 0-{MAX_SECTORS - 1}, got {sector}")
    if is_extended_sector(sector):
        base = EXTENDED_AREA_OFFSET + (sector - FIRST_EXTENDED_SECTOR) * EXTENDED_SECTOR_SIZE
        return SectorLayout(base, BLOCKS_PER_EXTENDED_SECTOR, BYTES_PER_BLOCK)
    return SectorLayout(sector * SECTOR_SIZE, BLOCKS_PER_SECTOR, BYTES_PER_BLOCK)


def sector_layouts(dump_length: int, force_1k: bool = False) -> list[SectorLayout]:
    """Return the layout of every sector in a dump of the given length."""
    return [sector_layout(s) for s in range(resolve(dump_length, force_1k))]


def first_block_number(sector: int) -> int:
    """Return the absolute block number of the first block in a sector."""
    return sector_layout(sector).base_offset // BYTES_PER_BLOCK


def is_sector_trailer(sector: int, block: int) -> bool:
    """Check if a block index within a sector is the sector trailer."""
    return block == sector_layout(sector).block_count - 1


def parse_sector_trailer(data: bytes) -> SectorTrailer:
    """
    Parse a 16-byte sector trailer block.

    Returns the key_a, access_bits and key_b fields as bytes.
    """
    if len(data) != BYTES_PER_BLOCK:
        raise ValueError(f"Sector trailer must be {BYTES_PER_BLOCK} bytes, got {len(data)}")
    return SectorTrailer(
        key_a=bytes(data[KEY_A_OFFSET:KEY_A_OFFSET + KEY_A_LENGTH]),
        access_bits=bytes(data[ACCESS_BITS_OFFSET:ACCESS_BITS_OFFSET + ACCESS_BITS_LENGTH]),
        key_b=bytes(data[KEY_B_OFFSET:KEY_B_OFFSET + KEY_B_LENGTH]),
    )
