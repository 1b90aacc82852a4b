"""JSON value store over a raw key/value backend."""

from __future__ import annotations

import json
import logging
from typing import Any

from services.marketplace.application.interfaces import KeyValueBackend

LOGGER = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user"
REGISTERED_USERS_KEY = "registered_users"
WORKERS_KEY = "workers"
INITIALIZED_KEY = "app_initialized"


def cart_key(user_id: str) -> str:
    return f"cart_{user_id}"


def user_data_key(user_id: str, data_type: str) -> str:
    return f"user_{user_id}_{data_type}"


class InMemoryKeyValueBackend(KeyValueBackend):
    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._entries.get(key)

    def write(self, key: str, raw: str) -> None:
        self._entries[key] = raw

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class KeyedLocalStore:
    """Reads never raise: undecodable or unreadable values count as absent."""

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend

    def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._backend.read(key)
        except Exception as exc:
            LOGGER.error("Failed to read %s: %s", key, exc)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            LOGGER.warning("Discarding malformed value stored under %s", key)
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as exc:
            LOGGER.error("Value for %s is not JSON serializable: %s", key, exc)
            return False
        try:
            self._backend.write(key, raw)
        except Exception as exc:
            LOGGER.error("Failed to write %s: %s", key, exc)
            return False
        return True

    def remove(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except Exception as exc:
            LOGGER.error("Failed to remove %s: %s", key, exc)
