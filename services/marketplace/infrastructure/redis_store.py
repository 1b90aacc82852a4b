from __future__ import annotations

import json
import logging
import uuid

from redis import Redis
from redis.exceptions import RedisError

from services.marketplace.application.interfaces import KeyValueBackend

LOGGER = logging.getLogger(__name__)


class RedisKeyValueBackend(KeyValueBackend):
    """Stores values in Redis and broadcasts every change on `channel`.

    Other processes sharing the Redis instance learn about the change through
    `RedisStorageChangeListener`; `origin` lets a process skip its own writes.
    """

    def __init__(
        self,
        client: Redis,
        *,
        channel: str,
        key_prefix: str = "",
        origin: str | None = None,
    ) -> None:
        self._client = client
        self._channel = channel
        self._key_prefix = key_prefix
        self.origin = origin or uuid.uuid4().hex

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def read(self, key: str) -> str | None:
        value = self._client.get(self._key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def write(self, key: str, raw: str) -> None:
        self._client.set(self._key(key), raw)
        self._broadcast(key)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))
        self._broadcast(key)

    def _broadcast(self, key: str) -> None:
        payload = {"key": key, "origin": self.origin}
        try:
            self._client.publish(self._channel, json.dumps(payload))
        except RedisError as exc:
            LOGGER.error("Failed to broadcast change of %s: %s", key, exc)


def create_redis_client(host: str, port: int, db: int) -> Redis:
    return Redis(host=host, port=port, db=db, decode_responses=False)
