"""
Dump report: walks every sector and block of a MIFARE Classic dump and
decodes its access conditions into one record per block.

Only a dump of the wrong size aborts the report. Inconsistent access bits
are reported on the affected blocks and decoding continues.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from . import access
from .access import AccessCondition
from .errors import InconsistentBitsError
from .mifare import (
    BYTES_PER_BLOCK, SectorLayout, first_block_number, interpreted_size,
    is_sector_trailer, parse_sector_trailer, resolve, sector_layout,
)

logger = logging.getLogger(__name__)

ERROR_MARKER = "ERR"


def _printable(data: bytes) -> str:
    """Render bytes as ASCII, replacing non-printable characters with dots."""
    return "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in data)


# ──────────────────────────────────────────────
# Report models
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class CardInfo:
    """Manufacturer data from block 0 (4-byte UID cards)."""
    uid: bytes
    bcc: int
    sak: int
    atqa: bytes
    manufacturer_data: bytes

    @classmethod
    def from_block(cls, block: bytes) -> "CardInfo":
        if len(block) != BYTES_PER_BLOCK:
            raise ValueError(f"Block 0 must be {BYTES_PER_BLOCK} bytes, got {len(block)}")
        return cls(
            uid=bytes(block[0:4]),
            bcc=block[4],
            sak=block[5],
            atqa=bytes(block[6:8]),
            manufacturer_data=bytes(block[8:16]),
        )

    @property
    def bcc_valid(self) -> bool:
        """The BCC is the XOR of the four UID bytes."""
        check = 0
        for b in self.uid:
            check ^= b
        return check == self.bcc

    def to_dict(self) -> dict:
        return {
            "uid": self.uid.hex().upper(),
            "bcc": f"{self.bcc:02X}",
            "bcc_valid": self.bcc_valid,
            "sak": f"{self.sak:02X}",
            "atqa": self.atqa.hex().upper(),
            "manufacturer_data": self.manufacturer_data.hex().upper(),
        }


@dataclass(frozen=True)
class BlockRecord:
    """One decoded block of the dump."""
    sector: int
    block: int                  # Index within the sector
    absolute_block: int         # Running block number across the dump
    is_trailer: bool
    data: bytes
    condition: Optional[AccessCondition]
    permissions: str
    key_a: bytes = b""          # Trailer fields, empty for data blocks
    access_bits: bytes = b""
    key_b: bytes = b""

    @property
    def error(self) -> bool:
        """True if the access bits for this block are inconsistent."""
        return self.condition is None

    @property
    def show_sector(self) -> bool:
        """The sector number is shown once per sector, next to block 1."""
        return self.block == 1

    @property
    def hex(self) -> str:
        return self.data.hex()

    @property
    def ascii(self) -> str:
        return _printable(self.data)

    @property
    def access_text(self) -> str:
        return ERROR_MARKER if self.condition is None else self.condition.bits

    def to_dict(self) -> dict:
        d = {
            "sector": self.sector,
            "block": self.block,
            "absolute_block": self.absolute_block,
            "trailer": self.is_trailer,
            "data": self.data.hex().upper(),
            "access_condition": None if self.condition is None else self.condition.bits,
            "error": self.error,
            "permissions": self.permissions,
            "ascii": self.ascii,
        }
        if self.is_trailer:
            d["key_a"] = self.key_a.hex().upper()
            d["access_bits"] = self.access_bits.hex().upper()
            d["key_b"] = self.key_b.hex().upper()
        return d


@dataclass(frozen=True)
class DumpReport:
    """Decoded view of a complete dump."""
    size: int
    sector_count: int
    card: CardInfo
    blocks: tuple[BlockRecord, ...]

    @property
    def error_count(self) -> int:
        return sum(1 for b in self.blocks if b.error)

    def sector(self, index: int) -> list[BlockRecord]:
        """Return the records of one sector."""
        return [b for b in self.blocks if b.sector == index]

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "sector_count": self.sector_count,
            "card": self.card.to_dict(),
            "error_count": self.error_count,
            "blocks": [b.to_dict() for b in self.blocks],
        }


# ──────────────────────────────────────────────
# Builder
# ──────────────────────────────────────────────

def _sector_records(dump: bytes, sector: int, layout: SectorLayout) -> list[BlockRecord]:
    trailer = parse_sector_trailer(
        dump[layout.trailer_offset:layout.trailer_offset + layout.block_size]
    )
    first_block = first_block_number(sector)

    records = []
    for block in range(layout.block_count):
        start = layout.base_offset + block * layout.block_size
        is_trailer = is_sector_trailer(sector, block)

        try:
            condition = access.decode(trailer.access_bits, block, layout.extended)
        except InconsistentBitsError as e:
            logger.warning("Sector %d block %d: %s", sector, block, e)
            condition = None

        if condition is None:
            permissions = ""
        else:
            permissions = access.permission_for(condition, sector, block, is_trailer)

        records.append(BlockRecord(
            sector=sector,
            block=block,
            absolute_block=first_block + block,
            is_trailer=is_trailer,
            data=bytes(dump[start:start + layout.block_size]),
            condition=condition,
            permissions=permissions,
            key_a=trailer.key_a if is_trailer else b"",
            access_bits=trailer.access_bits if is_trailer else b"",
            key_b=trailer.key_b if is_trailer else b"",
        ))
    return records


def build_report(dump: bytes, force_1k: bool = False) -> DumpReport:
    """
    Decode a complete MIFARE Classic dump.

    Args:
        dump: Raw dump of 320, 1024, 2048 or 4096 bytes.
        force_1k: Decode only the first 1024 bytes as a 1K card.

    Returns:
        DumpReport with one record per block, in sector then block order.

    Raises:
        InvalidSizeError: The dump length is not a known card size.
    """
    sectors = resolve(len(dump), force_1k)
    size = interpreted_size(len(dump), force_1k)
    dump = bytes(dump[:size])
    logger.info("Dump size: %d bytes, %d sectors", size, sectors)

    records: list[BlockRecord] = []
    for sector in range(sectors):
        records.extend(_sector_records(dump, sector, sector_layout(sector)))

    report = DumpReport(
        size=size,
        sector_count=sectors,
        card=CardInfo.from_block(dump[:BYTES_PER_BLOCK]),
        blocks=tuple(records),
    )
    if report.error_count:
        logger.info("%d block(s) with inconsistent access bits", report.error_count)
    return report
