# koodi_api/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/koodi"
DEFAULT_DB_NAME = "koodi"


def _flag(raw: str) -> bool:
    return raw.strip().lower() not in {"0", "false", "no", "off"}


class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000

    mongodb_uri: str = DEFAULT_MONGODB_URI
    # None -> database named in the URI, else DEFAULT_DB_NAME
    mongodb_db: str | None = None
    mongodb_timeout_ms: int = 5000
    mongodb_ping_timeout_ms: int = 1000

    seed_enabled: bool = True
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Read settings from the environment (and .env, loaded at import)."""
    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        mongodb_uri=os.getenv("MONGODB_URI", "").strip() or DEFAULT_MONGODB_URI,
        mongodb_db=os.getenv("MONGODB_DB", "").strip() or None,
        mongodb_timeout_ms=int(os.getenv("MONGODB_TIMEOUT_MS", "5000")),
        mongodb_ping_timeout_ms=int(os.getenv("MONGODB_PING_TIMEOUT_MS", "1000")),
        seed_enabled=_flag(os.getenv("SEED_ENABLED", "1")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
