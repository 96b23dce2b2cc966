"""
Dump input parsing: converts the common dump formats to raw bytes and
decodes them into a DumpReport.

Supports multiple input formats:
- Raw binary dump (.mfd / .bin, 320/1024/2048/4096 bytes)
- Hex string dump
- Base64 string dump
- Block-by-block hex list
- Proxmark3 text dump ("Block NN: AA BB ...")
- Proxmark3 .eml dump (one block of 32 hex chars per line)
- Proxmark3 JSON dump ({"blocks": {"0": "...", ...}})
"""

import base64
import binascii
import json
import logging
import sys
from pathlib import Path
from typing import Union

from .errors import DumpFormatError
from .mifare import BYTES_PER_BLOCK, MAX_BLOCKS, SECTOR_COUNTS
from .report import DumpReport, build_report

logger = logging.getLogger(__name__)

HEX_CHARS_PER_BLOCK = BYTES_PER_BLOCK * 2
TEXT_SUFFIXES = {".eml", ".txt", ".hex"}
TEXT_BYTES = frozenset(b"\t\n\r" + bytes(range(0x20, 0x7F)))


def _unhex(text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise DumpFormatError(f"Invalid hex data: {e}") from e


def _strip_whitespace(text: str) -> str:
    return "".join(text.split())


def _looks_like_text(raw: bytes) -> bool:
    return bool(raw.strip()) and all(b in TEXT_BYTES for b in raw)


def parse_from_binary(data: bytes, force_1k: bool = False) -> DumpReport:
    """Parse from a raw binary dump."""
    return build_report(data, force_1k=force_1k)


def parse_from_hex(hex_string: str, force_1k: bool = False) -> DumpReport:
    """Parse from a hex-encoded string (whitespace is ignored)."""
    return parse_from_binary(_unhex(_strip_whitespace(hex_string)), force_1k)


def parse_from_base64(b64_string: str, force_1k: bool = False) -> DumpReport:
    """Parse from a base64-encoded string."""
    try:
        data = base64.b64decode(_strip_whitespace(b64_string), validate=True)
    except binascii.Error as e:
        raise DumpFormatError(f"Invalid base64 data: {e}") from e
    return parse_from_binary(data, force_1k)


def blocks_to_binary(blocks: list[bytes]) -> bytes:
    """Join 16-byte blocks into a flat dump."""
    for i, b in enumerate(blocks):
        if len(b) != BYTES_PER_BLOCK:
            raise DumpFormatError(f"Block {i} must be {BYTES_PER_BLOCK} bytes, got {len(b)}")
    return b"".join(blocks)


def parse_from_hex_blocks(hex_blocks: list[str], force_1k: bool = False) -> DumpReport:
    """Parse from a list of hex-encoded block strings."""
    blocks = [_unhex(_strip_whitespace(h)) for h in hex_blocks]
    return parse_from_binary(blocks_to_binary(blocks), force_1k)


def proxmark3_text_to_binary(dump_text: str) -> bytes:
    """
    Convert a Proxmark3 text dump to raw bytes.

    Expected format (one block per line):
    Block 00: AA BB CC DD EE FF 00 11 22 33 44 55 66 77 88 99
    Block 01: ...
    """
    blocks = []
    for lineno, line in enumerate(dump_text.strip().splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        # Extract hex data after the colon
        if ":" in line:
            hex_part = line.split(":", 1)[1]
        else:
            hex_part = line
        hex_clean = _strip_whitespace(hex_part)
        if len(hex_clean) != HEX_CHARS_PER_BLOCK:
            raise DumpFormatError(
                f"Line {lineno}: expected {HEX_CHARS_PER_BLOCK} hex chars, got {len(hex_clean)}"
            )
        blocks.append(_unhex(hex_clean))
    return blocks_to_binary(blocks)


def parse_proxmark3_dump(dump_text: str, force_1k: bool = False) -> DumpReport:
    """Parse a Proxmark3 text dump."""
    return parse_from_binary(proxmark3_text_to_binary(dump_text), force_1k)


def parse_eml(eml_text: str, force_1k: bool = False) -> DumpReport:
    """
    Parse a Proxmark3 .eml dump.

    Each line holds one block as 32 hex characters. Unknown bytes written
    as "--" by some tools are not supported.
    """
    return parse_proxmark3_dump(eml_text, force_1k)


def proxmark3_json_to_binary(dump_data: dict) -> bytes:
    """Convert a Proxmark3 JSON dump's block map to raw bytes."""
    if not isinstance(dump_data, dict):
        raise DumpFormatError("JSON dump must be an object")
    blocks_dict = dump_data.get("blocks")
    if not isinstance(blocks_dict, dict) or not blocks_dict:
        raise DumpFormatError("JSON dump has no 'blocks' object")
    try:
        numbers = [int(k) for k in blocks_dict]
    except ValueError as e:
        raise DumpFormatError(f"Invalid block number in JSON dump: {e}") from e
    for n in numbers:
        if not 0 <= n < MAX_BLOCKS:
            raise DumpFormatError(
                f"Block number {n} in JSON dump is out of range (0-{MAX_BLOCKS - 1})"
            )
    count = max(numbers) + 1
    blocks = []
    for i in range(count):
        # Missing blocks are read as zeros
        hex_str = blocks_dict.get(str(i), "00" * BYTES_PER_BLOCK)
        if not isinstance(hex_str, str):
            raise DumpFormatError(f"Block {i} in JSON dump is not a hex string")
        blocks.append(_unhex(_strip_whitespace(hex_str)))
    return blocks_to_binary(blocks)


def parse_proxmark3_json(dump_data: Union[dict, str], force_1k: bool = False) -> DumpReport:
    """Parse a Proxmark3 JSON dump, given as a dict or JSON text."""
    if isinstance(dump_data, str):
        try:
            dump_data = json.loads(dump_data)
        except json.JSONDecodeError as e:
            raise DumpFormatError(f"Invalid JSON dump: {e}") from e
    return parse_from_binary(proxmark3_json_to_binary(dump_data), force_1k)


def decode_dump_bytes(raw: bytes, name: str = "", force_1k: bool = False) -> DumpReport:
    """
    Decode a dump whose format is guessed from its name and content.

    JSON and text dumps are recognised by suffix, or by content when the
    length is not a valid binary dump size. Anything else is treated as a
    raw binary dump.
    """
    suffix = Path(name).suffix.lower()
    label = name or "input"

    if suffix != ".json" and suffix not in TEXT_SUFFIXES and len(raw) in SECTOR_COUNTS:
        return parse_from_binary(raw, force_1k)

    if suffix == ".json" or raw.lstrip().startswith(b"{"):
        logger.debug("Reading %s as Proxmark3 JSON dump", label)
        return parse_proxmark3_json(raw.decode("utf-8", errors="replace"), force_1k)

    if suffix in TEXT_SUFFIXES or _looks_like_text(raw):
        logger.debug("Reading %s as text dump", label)
        return parse_proxmark3_dump(raw.decode("ascii", errors="replace"), force_1k)

    return parse_from_binary(raw, force_1k)


def load_dump(path: str, force_1k: bool = False) -> DumpReport:
    """Read and decode a dump file. A path of "-" reads from stdin."""
    if path == "-":
        raw = sys.stdin.buffer.read()
        name = ""
    else:
        raw = Path(path).read_bytes()
        name = path
    logger.debug("Read %d bytes from %s", len(raw), name or "stdin")
    return decode_dump_bytes(raw, name, force_1k)
