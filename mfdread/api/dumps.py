"""API routes for MIFARE Classic dump decoding."""

from fastapi import APIRouter, HTTPException, UploadFile, File, Form
from pydantic import BaseModel

from mfdread.config import FORCE_1K, MAX_UPLOAD_BYTES
from mfdread.rfid.access import DATA_PERMISSIONS, MANUFACTURER_PERMISSION, TRAILER_PERMISSIONS
from mfdread.rfid.dump_parser import (
    decode_dump_bytes, parse_eml, parse_from_base64, parse_from_hex,
    parse_from_hex_blocks, parse_proxmark3_dump, parse_proxmark3_json,
)
from mfdread.rfid.errors import DumpError
from mfdread.rfid.mifare import sector_layouts

router = APIRouter(prefix="/api", tags=["dumps"])


# ──────────────────────────────────────────────
# Request models
# ──────────────────────────────────────────────

class DecodeRequest(BaseModel):
    force_1k: bool = FORCE_1K


class DecodeHexRequest(DecodeRequest):
    hex_data: str


class DecodeBase64Request(DecodeRequest):
    b64_data: str


class DecodeHexBlocksRequest(DecodeRequest):
    blocks: list[str]  # Hex-encoded blocks


class DecodeTextRequest(DecodeRequest):
    dump_text: str


class DecodeJsonRequest(DecodeRequest):
    dump: dict  # Proxmark3 JSON dump


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@router.post("/dumps/decode/hex")
async def decode_hex(req: DecodeHexRequest):
    """Decode a hex-encoded dump."""
    try:
        return parse_from_hex(req.hex_data, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/base64")
async def decode_base64(req: DecodeBase64Request):
    """Decode a base64-encoded dump."""
    try:
        return parse_from_base64(req.b64_data, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/blocks")
async def decode_blocks(req: DecodeHexBlocksRequest):
    """Decode a list of hex-encoded blocks."""
    try:
        return parse_from_hex_blocks(req.blocks, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/proxmark")
async def decode_proxmark(req: DecodeTextRequest):
    """Decode a Proxmark3 text dump."""
    try:
        return parse_proxmark3_dump(req.dump_text, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/eml")
async def decode_eml(req: DecodeTextRequest):
    """Decode a Proxmark3 .eml dump."""
    try:
        return parse_eml(req.dump_text, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/json")
async def decode_json(req: DecodeJsonRequest):
    """Decode a Proxmark3 JSON dump."""
    try:
        return parse_proxmark3_json(req.dump, req.force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/dumps/decode/file")
async def decode_file(file: UploadFile = File(...), force_1k: bool = Form(FORCE_1K)):
    """Decode an uploaded dump file (binary, .eml, text or JSON)."""
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {MAX_UPLOAD_BYTES} bytes")
    try:
        return decode_dump_bytes(data, file.filename or "", force_1k).to_dict()
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/geometry/{size}")
async def geometry(size: int, force_1k: bool = False):
    """Return the sector layout for a dump of the given size."""
    try:
        layouts = sector_layouts(size, force_1k)
    except DumpError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "size": size,
        "sector_count": len(layouts),
        "sectors": [
            {
                "sector": i,
                "base_offset": layout.base_offset,
                "block_count": layout.block_count,
                "block_size": layout.block_size,
            }
            for i, layout in enumerate(layouts)
        ],
    }


@router.get("/permissions")
async def permissions():
    """Return the permission text for every access condition."""
    return {
        "trailer": {format(i, "03b"): text for i, text in enumerate(TRAILER_PERMISSIONS)},
        "data": {format(i, "03b"): text for i, text in enumerate(DATA_PERMISSIONS)},
        "manufacturer": MANUFACTURER_PERMISSION,
    }
