"""
Application settings.

Collects the env-derived configuration into one typed, immutable object
shared by the store, the mint protocol and the HTTP binding.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from nestera.config.env import (
    get_api_bind,
    get_database_url,
    get_mint_max_expiry_seconds,
    get_mint_replay_protection,
    load_nestera_env,
)


@dataclass(frozen=True)
class Settings:
    database_url: str
    mint_replay_protection: bool
    mint_max_expiry_seconds: int
    log_level: str
    api_host: str
    api_port: int


def get_settings() -> Settings:
    """
    Return the current application settings.

    Read fresh on every call so tests can monkeypatch the environment.
    """
    load_nestera_env()
    host, port = get_api_bind()
    return Settings(
        database_url=get_database_url(),
        mint_replay_protection=get_mint_replay_protection(),
        mint_max_expiry_seconds=get_mint_max_expiry_seconds(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_host=host,
        api_port=port,
    )
