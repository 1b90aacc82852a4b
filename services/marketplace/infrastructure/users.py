"""User records kept in the keyed store.

`registered_users` holds every account; `current_user` holds a copy of the
signed-in account and is absent while nobody is signed in.
"""

from __future__ import annotations

import logging
from typing import Any

from services.marketplace.application.interfaces import KeyedStore, UserRepository
from services.marketplace.domain.errors import StorageWriteError
from services.marketplace.domain.user import User
from services.marketplace.infrastructure.local_store import (
    CURRENT_USER_KEY,
    REGISTERED_USERS_KEY,
)

LOGGER = logging.getLogger(__name__)


def _decode_user(data: Any) -> User | None:
    try:
        return User.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError):
        LOGGER.warning("Skipping malformed user record: %r", data)
        return None


class LocalUserRepository(UserRepository):
    def __init__(self, store: KeyedStore) -> None:
        self._store = store

    def list_users(self) -> list[User]:
        return [user for user in map(_decode_user, self._raw_users()) if user is not None]

    def get_by_email(self, email: str) -> User | None:
        for user in self.list_users():
            if user.email == email:
                return user
        return None

    def has_email(self, email: str) -> bool:
        """True if any stored record claims `email`, decodable or not."""
        return any(
            isinstance(entry, dict) and entry.get("email") == email
            for entry in self._raw_users()
        )

    def create(self, user: User) -> User:
        entries = self._raw_users()
        entries.append(user.to_dict())
        self._save_all(entries)
        return user

    def update(self, user: User) -> bool:
        """Replace the registered record with the same id; False if there is none.

        Other entries are written back exactly as stored, including ones that
        do not decode.
        """
        entries = self._raw_users()
        for index, entry in enumerate(entries):
            if isinstance(entry, dict) and entry.get("id") == user.id:
                entries[index] = user.to_dict()
                self._save_all(entries)
                return True
        return False

    def _raw_users(self) -> list[Any]:
        raw = self._store.get(REGISTERED_USERS_KEY, [])
        return raw if isinstance(raw, list) else []

    def _save_all(self, entries: list[Any]) -> None:
        if not self._store.set(REGISTERED_USERS_KEY, entries):
            raise StorageWriteError("Registered users could not be saved")

    def get_current(self) -> User | None:
        raw = self._store.get(CURRENT_USER_KEY)
        if raw is None:
            return None
        return _decode_user(raw)

    def set_current(self, user: User) -> None:
        if not self._store.set(CURRENT_USER_KEY, user.to_dict()):
            raise StorageWriteError("Session could not be saved")

    def clear_current(self) -> None:
        self._store.remove(CURRENT_USER_KEY)
