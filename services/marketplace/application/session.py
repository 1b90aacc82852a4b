"""Ownership of the signed-in user.

The session manager is the only component that reads or writes the
current-user marker. Services and façades receive it by injection.
"""

from __future__ import annotations

import logging

from services.marketplace.application.interfaces import (
    ChangePublisher,
    IdentityProvider,
    UserRepository,
)
from services.marketplace.domain.errors import NotLoggedInError
from services.marketplace.domain.events import ChangeNotification, Topic
from services.marketplace.domain.user import User
from services.marketplace.infrastructure.local_store import CURRENT_USER_KEY

LOGGER = logging.getLogger(__name__)


class SessionManager(IdentityProvider):
    def __init__(self, users: UserRepository, publisher: ChangePublisher) -> None:
        self._users = users
        self._publisher = publisher
        self._current: User | None = users.get_current()
        publisher.subscribe(Topic.STORAGE_CHANGED, self._on_storage_changed)

    @property
    def current_user(self) -> User | None:
        return self._current

    @property
    def user_id(self) -> str | None:
        return self._current.id if self._current else None

    def is_authenticated(self) -> bool:
        return self._current is not None

    def require_user(self) -> User:
        if self._current is None:
            raise NotLoggedInError("User not logged in")
        return self._current

    async def current_user_id(self) -> str | None:
        return self.user_id

    def start(self, user: User) -> None:
        self._users.set_current(user)
        self._current = user
        LOGGER.info("User %s signed in", user.id)
        self._announce()

    def end(self) -> None:
        previous = self.user_id
        self._users.clear_current()
        self._current = None
        if previous is not None:
            LOGGER.info("User %s signed out", previous)
        self._announce()

    def refresh(self, user: User) -> None:
        """Persist a new version of the signed-in user without an auth change."""
        self._users.set_current(user)
        self._current = user

    def reconcile(self) -> None:
        """Re-read the current-user marker, e.g. after another process changed it."""
        stored = self._users.get_current()
        changed_identity = (stored.id if stored else None) != self.user_id
        changed_record = stored != self._current
        self._current = stored
        if changed_identity:
            LOGGER.info("Session changed externally, now %s", self.user_id)
            self._announce()
        elif changed_record:
            self._publisher.publish(
                ChangeNotification(topic=Topic.PROFILE_CHANGED, user_id=self.user_id)
            )

    def _announce(self) -> None:
        self._publisher.publish(
            ChangeNotification(topic=Topic.AUTH_CHANGED, user_id=self.user_id)
        )

    def _on_storage_changed(self, notification: ChangeNotification) -> None:
        if notification.key == CURRENT_USER_KEY:
            self.reconcile()
