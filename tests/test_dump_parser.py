"""Tests for dump input parsing."""

import base64
import io
import json
import sys

import pytest
from mfdread.rfid.dump_parser import (
    parse_from_binary, parse_from_hex, parse_from_base64,
    parse_from_hex_blocks, parse_proxmark3_dump, parse_eml,
    parse_proxmark3_json, proxmark3_json_to_binary, decode_dump_bytes, load_dump,
)
from mfdread.rfid.errors import DumpFormatError, InvalidSizeError
from mfdread.rfid.mifare import BYTES_PER_BLOCK

TOTAL_BYTES = 1024
TOTAL_BLOCKS = TOTAL_BYTES // BYTES_PER_BLOCK


def make_binary_dump() -> bytes:
    """Create a 1024-byte dump with transport trailers."""
    data = bytearray(TOTAL_BYTES)
    # Set some UID bytes
    data[0:4] = bytes.fromhex("DEADBEEF")
    for sector in range(16):
        t = sector * 64 + 48
        data[t:t + 16] = b"\xff" * 6 + bytes.fromhex("FF078069") + b"\xff" * 6
    return bytes(data)


def split_blocks(data: bytes) -> list[bytes]:
    return [data[i * BYTES_PER_BLOCK:(i + 1) * BYTES_PER_BLOCK] for i in range(TOTAL_BLOCKS)]


def make_proxmark3_text(data: bytes) -> str:
    lines = []
    for i, block in enumerate(split_blocks(data)):
        hex_bytes = " ".join(f"{b:02X}" for b in block)
        lines.append(f"Block {i:02d}: {hex_bytes}")
    return "\n".join(lines)


class TestParseFromBinary:
    def test_valid_binary(self):
        report = parse_from_binary(make_binary_dump())
        assert report.card.uid == bytes.fromhex("DEADBEEF")
        assert report.error_count == 0

    def test_wrong_size_raises(self):
        with pytest.raises(InvalidSizeError):
            parse_from_binary(bytes(512))

    def test_force_1k(self):
        data = make_binary_dump() * 4
        assert parse_from_binary(data, force_1k=True).sector_count == 16


class TestParseFromHex:
    def test_valid_hex(self):
        report = parse_from_hex(make_binary_dump().hex())
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_hex_with_spaces(self):
        hex_str = make_binary_dump().hex()
        # Insert spaces every 2 chars
        spaced = " ".join(hex_str[i:i + 2] for i in range(0, len(hex_str), 2))
        report = parse_from_hex(spaced)
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_invalid_hex_raises(self):
        with pytest.raises(DumpFormatError):
            parse_from_hex("zz" * 1024)


class TestParseFromBase64:
    def test_valid_base64(self):
        b64 = base64.b64encode(make_binary_dump()).decode()
        report = parse_from_base64(b64)
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_invalid_base64_raises(self):
        with pytest.raises(DumpFormatError):
            parse_from_base64("not base64!!")


class TestParseFromHexBlocks:
    def test_valid_hex_blocks(self):
        blocks = [b.hex() for b in split_blocks(make_binary_dump())]
        report = parse_from_hex_blocks(blocks)
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_short_block_raises(self):
        blocks = [b.hex() for b in split_blocks(make_binary_dump())]
        blocks[5] = "00" * 8
        with pytest.raises(DumpFormatError):
            parse_from_hex_blocks(blocks)


class TestProxmark3Dump:
    def test_valid_dump(self):
        report = parse_proxmark3_dump(make_proxmark3_text(make_binary_dump()))
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_dump_with_comments(self):
        text = "# Proxmark3 dump\n\n" + make_proxmark3_text(make_binary_dump())
        report = parse_proxmark3_dump(text)
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_incomplete_dump_raises(self):
        with pytest.raises(InvalidSizeError):
            parse_proxmark3_dump("Block 00: " + " ".join(["00"] * 16))

    def test_malformed_line_raises(self):
        with pytest.raises(DumpFormatError):
            parse_proxmark3_dump("Block 00: 00 11 22")


class TestEml:
    def test_valid_eml(self):
        text = "\n".join(b.hex().upper() for b in split_blocks(make_binary_dump()))
        report = parse_eml(text)
        assert report.sector_count == 16
        assert report.error_count == 0


class TestProxmark3Json:
    def make_json(self) -> dict:
        blocks = split_blocks(make_binary_dump())
        return {"Created": "proxmark3", "blocks": {str(i): b.hex().upper() for i, b in enumerate(blocks)}}

    def test_dict_input(self):
        report = parse_proxmark3_json(self.make_json())
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_text_input(self):
        report = parse_proxmark3_json(json.dumps(self.make_json()))
        assert report.sector_count == 16

    def test_missing_blocks_read_as_zero(self):
        dump = self.make_json()
        del dump["blocks"]["1"]
        report = parse_proxmark3_json(dump)
        assert report.blocks[1].data == bytes(16)

    def test_no_blocks_raises(self):
        with pytest.raises(DumpFormatError):
            parse_proxmark3_json({"Created": "proxmark3"})

    def test_bad_json_raises(self):
        with pytest.raises(DumpFormatError):
            parse_proxmark3_json("{not json")

    @pytest.mark.parametrize("number", ["256", "2000000", "-1"])
    def test_block_number_out_of_range(self, number):
        with pytest.raises(DumpFormatError, match="out of range"):
            proxmark3_json_to_binary({"blocks": {number: "00" * BYTES_PER_BLOCK}})

    def test_last_block_number_accepted(self):
        data = proxmark3_json_to_binary({"blocks": {"255": "11" * BYTES_PER_BLOCK}})
        assert len(data) == 4096
        assert data[-BYTES_PER_BLOCK:] == b"\x11" * BYTES_PER_BLOCK


class TestFormatDetection:
    def test_binary(self):
        report = decode_dump_bytes(make_binary_dump(), "card.mfd")
        assert report.size == 1024

    def test_eml_by_suffix(self):
        text = "\n".join(b.hex() for b in split_blocks(make_binary_dump()))
        report = decode_dump_bytes(text.encode(), "card.eml")
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_json_by_content(self):
        blocks = split_blocks(make_binary_dump())
        raw = json.dumps({"blocks": {str(i): b.hex() for i, b in enumerate(blocks)}}).encode()
        report = decode_dump_bytes(raw)
        assert report.card.uid == bytes.fromhex("DEADBEEF")


class TestLoadDump:
    def test_load_file(self, tmp_path):
        path = tmp_path / "dump.mfd"
        path.write_bytes(make_binary_dump())
        report = load_dump(str(path))
        assert report.sector_count == 16

    def test_load_stdin(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(make_binary_dump())))
        report = load_dump("-")
        assert report.card.uid == bytes.fromhex("DEADBEEF")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            load_dump(str(tmp_path / "missing.mfd"))
