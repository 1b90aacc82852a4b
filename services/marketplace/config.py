from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

STORE_BACKENDS = ("memory", "sql", "redis")


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


@dataclass(frozen=True)
class MarketplaceConfig:
    store_backend: str
    database_url: str
    redis_host: str
    redis_port: int
    redis_db: int
    redis_channel: str
    redis_key_prefix: str
    user_id_prefix: str
    user_id_length: int
    event_history_limit: int
    service_fee_rate: float
    log_level: str


def load_config() -> MarketplaceConfig:
    store_backend = os.getenv("MARKETPLACE_STORE_BACKEND", "memory").strip().lower()
    if store_backend not in STORE_BACKENDS:
        raise ValueError(
            f"MARKETPLACE_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}"
        )
    history_limit = _env_int("MARKETPLACE_EVENT_HISTORY_LIMIT", 50)
    if history_limit < 1:
        raise ValueError("MARKETPLACE_EVENT_HISTORY_LIMIT must be positive")
    return MarketplaceConfig(
        store_backend=store_backend,
        database_url=os.getenv("MARKETPLACE_DATABASE_URL", "sqlite:///marketplace.db"),
        redis_host=os.getenv("MARKETPLACE_REDIS_HOST", "localhost"),
        redis_port=_env_int("MARKETPLACE_REDIS_PORT", 6379),
        redis_db=_env_int("MARKETPLACE_REDIS_DB", 0),
        redis_channel=os.getenv("MARKETPLACE_REDIS_CHANNEL", "storage_changed"),
        redis_key_prefix=os.getenv("MARKETPLACE_REDIS_KEY_PREFIX", "marketplace:"),
        user_id_prefix=os.getenv("MARKETPLACE_USER_ID_PREFIX", "usr"),
        user_id_length=_env_int("MARKETPLACE_USER_ID_LENGTH", 16),
        event_history_limit=history_limit,
        service_fee_rate=_env_float("MARKETPLACE_SERVICE_FEE_RATE", 0.10),
        log_level=os.getenv("MARKETPLACE_LOG_LEVEL", "INFO").upper(),
    )
