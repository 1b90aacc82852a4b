from __future__ import annotations

import secrets

from services.marketplace.application.interfaces import IdProvider


class PrefixedIdProvider(IdProvider):
    """Random ids such as `usr_3f9c0a...`; `length` counts hex characters."""

    def __init__(self, prefix: str, length: int) -> None:
        if length < 8:
            raise ValueError("Id length must be at least 8 characters")
        self._prefix = prefix
        self._length = length

    def generate(self) -> str:
        token = secrets.token_hex((self._length + 1) // 2)[: self._length]
        return f"{self._prefix}_{token}" if self._prefix else token
