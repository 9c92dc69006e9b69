"""
Environment variable loading and validation for Nestera.

- NESTERA_DB_URL / DATABASE_URL: SQLAlchemy URL for the ledger store
- NESTERA_DB_PATH: SQLite file used when no URL is set (default: nestera.db)
- NESTERA_MINT_REPLAY_PROTECTION: 1/true makes each signed mint single-use
- NESTERA_MINT_MAX_EXPIRY_SEC: upper bound on a payload's expiry_duration (0 = none)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is nestera/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "nestera.db"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000

_TRUTHY = ("1", "true", "yes", "on")


def load_nestera_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def get_database_url() -> str:
    """
    Resolve the ledger store URL.
    Order: NESTERA_DB_URL > DATABASE_URL > sqlite file at NESTERA_DB_PATH (or default).
    """
    load_nestera_env()
    url = (os.getenv("NESTERA_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("NESTERA_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_mint_replay_protection() -> bool:
    """Return True when redeemed mint signatures must be remembered and rejected on reuse."""
    load_nestera_env()
    raw = (os.getenv("NESTERA_MINT_REPLAY_PROTECTION") or "").strip().lower()
    return raw in _TRUTHY


def get_mint_max_expiry_seconds() -> int:
    """Return the maximum accepted expiry_duration in seconds; 0 disables the cap."""
    load_nestera_env()
    raw = (os.getenv("NESTERA_MINT_MAX_EXPIRY_SEC") or "").strip()
    if not raw:
        return 0
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"NESTERA_MINT_MAX_EXPIRY_SEC must be an integer, got {raw!r}") from e
    if value < 0:
        raise ValueError("NESTERA_MINT_MAX_EXPIRY_SEC must be >= 0")
    return value


def get_api_bind() -> tuple[str, int]:
    """Return (host, port) for the HTTP binding from NESTERA_API_HOST / PORT."""
    load_nestera_env()
    host = (os.getenv("NESTERA_API_HOST") or "").strip() or DEFAULT_API_HOST
    port = int((os.getenv("PORT") or "").strip() or DEFAULT_API_PORT)
    return host, port


def mask_database_url(url: str) -> str:
    """Strip credentials and query string from a database URL for logs."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]
