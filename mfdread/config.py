"""Application configuration."""

import os

APP_NAME = "mfdread"
APP_VERSION = "1.0.0"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Decoding defaults
FORCE_1K = _env_flag("MFDREAD_FORCE_1K", False)

# CLI output
COLOR = _env_flag("MFDREAD_COLOR", True)

# Server logging
LOG_LEVEL = os.getenv("MFDREAD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Largest upload read by the API (a 4K Proxmark3 JSON dump is ~10 KiB)
MAX_UPLOAD_BYTES = int(os.getenv("MFDREAD_MAX_UPLOAD_BYTES", str(64 * 1024)))
