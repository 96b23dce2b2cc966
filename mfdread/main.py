"""
mfdread: MIFARE Classic dump analyser.

FastAPI backend providing APIs for:
- Decoding Mini/1K/2K/4K dumps (binary, hex, base64, Proxmark3 text/eml/JSON)
- Sector geometry lookup
- Access condition permission tables
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mfdread.config import APP_NAME, APP_VERSION, LOG_FORMAT, LOG_LEVEL
from mfdread.api import dumps

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)
    yield
    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(
    title=APP_NAME,
    description="MIFARE Classic dump analyser",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.include_router(dumps.router)


@app.get("/")
async def index():
    return {"name": APP_NAME, "version": APP_VERSION}
