"""
MIFARE Classic access conditions.

Bytes 6-9 of every sector trailer hold the access bits. Each of the four
slots of a sector (the three data blocks and the trailer, or for 16-block
sectors three clusters of five data blocks and the trailer) has three
condition bits C1, C2, C3. Every bit is stored twice, once as-is and once
inverted, so a corrupted field can be detected:

    byte 6:  /C2_3 /C2_2 /C2_1 /C2_0 | /C1_3 /C1_2 /C1_1 /C1_0
    byte 7:   C1_3  C1_2  C1_1  C1_0 | /C3_3 /C3_2 /C3_1 /C3_0
    byte 8:   C3_3  C3_2  C3_1  C3_0 |  C2_3  C2_2  C2_1  C2_0
    byte 9:   general purpose byte (not used for access control)

The condition value of a slot is C1 C2 C3 read as a 3-bit number
(C1 is the most significant bit), so "001" is the transport configuration
of a sector trailer.
"""

from dataclasses import dataclass
from typing import NamedTuple, Sequence

from .errors import InconsistentBitsError

SLOTS = 4
TRAILER_SLOT = SLOTS - 1
CLUSTER_SIZE = 5  # data blocks sharing one slot in a 16-block sector
CONDITION_MASK = 0b111
DEFAULT_GPB = 0x69


class BitPosition(NamedTuple):
    """Byte index within the access bits and bit offset of slot 0."""
    byte: int
    bit: int

    def read(self, access_bytes: bytes, slot: int) -> int:
        return (access_bytes[self.byte] >> (self.bit + slot)) & 1

    def write(self, buf: bytearray, slot: int, value: int) -> None:
        buf[self.byte] |= (value & 1) << (self.bit + slot)


class ConditionBit(NamedTuple):
    name: str
    direct: BitPosition
    inverted: BitPosition


# Most significant condition bit first
BIT_LAYOUT = (
    ConditionBit("C1", direct=BitPosition(1, 4), inverted=BitPosition(0, 0)),
    ConditionBit("C2", direct=BitPosition(2, 0), inverted=BitPosition(0, 4)),
    ConditionBit("C3", direct=BitPosition(2, 4), inverted=BitPosition(1, 0)),
)


# ──────────────────────────────────────────────
# Permission tables
# ──────────────────────────────────────────────

# Sector trailer: Key A r w | Access bits r w | Key B r w
TRAILER_PERMISSIONS = (
    "- A | A   - | A A",
    "- A | A   A | A A [transport]",
    "- - | A   - | A -",
    "- B | A/B B | - B",
    "- B | A/B - | - B",
    "- - | A/B B | - -",
    "- - | A/B - | - -",
    "- - | A/B - | - -",
)

# Data block: read | write | increment | decrement, transfer, restore
DATA_PERMISSIONS = (
    "A/B | A/B   | A/B | A/B [transport]",
    "A/B |  -    |  -  | A/B [value]",
    "A/B |  -    |  -  |  -  [r/w]",
    "  B |   B   |  -  |  -  [r/w]",
    "A/B |   B   |  -  |  -  [r/w]",
    "  B |  -    |  -  |  -  [r/w]",
    "A/B |   B   |   B | A/B [value]",
    " -  |  -    |  -  |  -  [r/w]",
)

# Block 0 of sector 0 can never be written
MANUFACTURER_PERMISSION = "-"


@dataclass(frozen=True)
class AccessCondition:
    """A decoded 3-bit access condition."""
    value: int

    def __post_init__(self):
        if not 0 <= self.value <= CONDITION_MASK:
            raise ValueError(f"Access condition must be 0-7, got {self.value}")

    @property
    def bits(self) -> str:
        """Return the condition as a "C1C2C3" bit string."""
        return format(self.value, "03b")

    @property
    def c1(self) -> int:
        return (self.value >> 2) & 1

    @property
    def c2(self) -> int:
        return (self.value >> 1) & 1

    @property
    def c3(self) -> int:
        return self.value & 1

    def __str__(self) -> str:
        return self.bits


def slot_for_block(block: int, extended: bool = False) -> int:
    """
    Return the access bit slot that governs a block.

    In 16-block sectors, blocks 0-4, 5-9 and 10-14 share slots 0, 1 and 2,
    and the trailer (block 15) uses slot 3.
    """
    slot = block // CLUSTER_SIZE if extended else block
    if not 0 <= slot < SLOTS:
        raise ValueError(f"Block {block} has no access slot (extended={extended})")
    return slot


def extract_bits(access_bytes: bytes, slot: int) -> tuple[int, int]:
    """
    Read the direct and inverted condition bits of one slot.

    Returns:
        (direct, inverted) as 3-bit values, C1 in the most significant bit.
    """
    if len(access_bytes) < 3:
        raise ValueError(f"Access bits need at least 3 bytes, got {len(access_bytes)}")
    if not 0 <= slot < SLOTS:
        raise ValueError(f"Slot must be 0-{SLOTS - 1}, got {slot}")
    direct = 0
    inverted = 0
    for bit in BIT_LAYOUT:
        direct = (direct << 1) | bit.direct.read(access_bytes, slot)
        inverted = (inverted << 1) | bit.inverted.read(access_bytes, slot)
    return direct, inverted


def is_consistent(direct: int, inverted: int) -> bool:
    """Check that the inverted bits are the exact complement of the direct bits."""
    return direct == (~inverted & CONDITION_MASK)


def decode(access_bytes: bytes, block: int, extended: bool = False) -> AccessCondition:
    """
    Decode the access condition of a block from its sector's access bits.

    Args:
        access_bytes: Bytes 6-9 of the sector trailer (the GPB is optional).
        block: Block index within the sector.
        extended: True for 16-block sectors (sectors 32-39 of a 4K card).

    Raises:
        InconsistentBitsError: The direct and inverted bits do not match.
    """
    slot = slot_for_block(block, extended)
    direct, inverted = extract_bits(access_bytes, slot)
    if not is_consistent(direct, inverted):
        raise InconsistentBitsError(slot, direct, inverted)
    return AccessCondition(direct)


def encode(conditions: Sequence[int], gpb: int = DEFAULT_GPB) -> bytes:
    """
    Build the 4 access bytes for the given slot conditions.

    Args:
        conditions: Four condition values (slot 0, 1, 2 and the trailer).
        gpb: General purpose byte appended as byte 9.
    """
    if len(conditions) != SLOTS:
        raise ValueError(f"Expected {SLOTS} conditions, got {len(conditions)}")
    buf = bytearray(3)
    for slot, value in enumerate(conditions):
        value = AccessCondition(value).value
        for shift, bit in zip((2, 1, 0), BIT_LAYOUT):
            direct = (value >> shift) & 1
            bit.direct.write(buf, slot, direct)
            bit.inverted.write(buf, slot, direct ^ 1)
    return bytes(buf) + bytes([gpb & 0xFF])


def trailer_permission(condition: AccessCondition) -> str:
    return TRAILER_PERMISSIONS[condition.value]


def data_permission(condition: AccessCondition) -> str:
    return DATA_PERMISSIONS[condition.value]


def permission_for(condition: AccessCondition, sector: int, block: int, is_trailer: bool) -> str:
    """Return the permission text for a block given its decoded condition."""
    if sector == 0 and block == 0:
        return MANUFACTURER_PERMISSION
    if is_trailer:
        return trailer_permission(condition)
    return data_permission(condition)
