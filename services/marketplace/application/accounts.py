"""Accounts, profiles, favorites and per-user data."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, TypeVar

from services.marketplace.application.dto import (
    LoginCommand,
    ProfileUpdate,
    RecordEventCommand,
    RegisterCommand,
)
from services.marketplace.application.interfaces import (
    ChangePublisher,
    IdProvider,
    KeyedStore,
    UserRepository,
)
from services.marketplace.application.session import SessionManager
from services.marketplace.domain.errors import (
    AlreadyFavoriteError,
    UserExistsError,
    UserNotFoundError,
)
from services.marketplace.domain.events import ChangeNotification, Topic
from services.marketplace.domain.user import (
    EVENT_HISTORY_LIMIT,
    EventRecord,
    Preferences,
    SocialLinks,
    User,
    UserProfile,
)
from services.marketplace.infrastructure.local_store import user_data_key

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class AccountService:
    """Profile and favorites repository for the signed-in user.

    Operations that need a signed-in user raise NotLoggedInError while the
    session is anonymous. Passwords are accepted but never checked: any
    registered email signs in.
    """

    def __init__(
        self,
        *,
        session: SessionManager,
        users: UserRepository,
        store: KeyedStore,
        publisher: ChangePublisher,
        user_id_provider: IdProvider,
        event_id_provider: IdProvider,
        history_limit: int = EVENT_HISTORY_LIMIT,
    ) -> None:
        self._session = session
        self._users = users
        self._store = store
        self._publisher = publisher
        self._user_id_provider = user_id_provider
        self._event_id_provider = event_id_provider
        self._history_limit = history_limit

    def get_current_user(self) -> User | None:
        return self._session.current_user

    def is_authenticated(self) -> bool:
        return self._session.is_authenticated()

    def register(self, command: RegisterCommand) -> User:
        if self._users.has_email(command.email):
            raise UserExistsError("User already exists with this email.")
        now = datetime.now(timezone.utc)
        user = User(
            id=self._user_id_provider.generate(),
            name=command.name,
            email=command.email,
            phone=command.phone,
            created_at=now,
            profile=UserProfile.default(now),
        )
        self._users.create(user)
        self._session.start(user)
        return user

    def login(self, command: LoginCommand) -> User:
        # TODO: verify command.password once accounts store a password hash.
        user = self._users.get_by_email(command.email)
        if user is None:
            raise UserNotFoundError("User not found. Please register first.")
        self._session.start(user)
        return user

    def logout(self) -> None:
        self._session.end()

    def update_profile(self, update: ProfileUpdate) -> User:
        user = self._session.require_user()
        profile = _merge_profile(user.profile, update)
        return self._save_profile(user, profile)

    def get_user_profile(self, user_id: str | None = None) -> UserProfile | None:
        user = self._session.current_user
        if user is None:
            return None
        if user_id is not None and user_id != user.id:
            LOGGER.warning("Access denied: cannot read the profile of user %s", user_id)
            return None
        return user.profile

    def add_to_favorites(self, worker_id: str) -> User:
        user = self._session.require_user()
        if worker_id in user.profile.favorites:
            raise AlreadyFavoriteError("Worker already in favorites")
        favorites = user.profile.favorites + (worker_id,)
        return self._save_profile(user, replace(user.profile, favorites=favorites))

    def remove_from_favorites(self, worker_id: str) -> User:
        user = self._session.require_user()
        favorites = tuple(fav for fav in user.profile.favorites if fav != worker_id)
        return self._save_profile(user, replace(user.profile, favorites=favorites))

    def add_event_to_history(self, command: RecordEventCommand) -> EventRecord:
        user = self._session.require_user()
        event = EventRecord(
            id=self._event_id_provider.generate(),
            event_type=command.event_type,
            date=datetime.now(timezone.utc),
            workers=tuple(command.workers),
            amount=command.amount,
        )
        history = ((event,) + user.profile.event_history)[: self._history_limit]
        self._save_profile(user, replace(user.profile, event_history=history))
        return event

    def get_user_data(self, user_id: str, data_type: str, default: T) -> T:
        if not self._has_access(user_id):
            LOGGER.warning("Access denied: user %s cannot read %s", user_id, data_type)
            return default
        return self._store.get(user_data_key(user_id, data_type), default)

    def set_user_data(self, user_id: str, data_type: str, value: Any) -> bool:
        if not self._has_access(user_id):
            LOGGER.warning("Access denied: user %s cannot modify %s", user_id, data_type)
            return False
        return self._store.set(user_data_key(user_id, data_type), value)

    def _has_access(self, user_id: str) -> bool:
        return self._session.user_id is not None and self._session.user_id == user_id

    def _save_profile(self, user: User, profile: UserProfile) -> User:
        updated = replace(
            user, profile=replace(profile, updated_at=datetime.now(timezone.utc))
        )
        if not self._users.update(updated):
            raise UserNotFoundError("Account is no longer registered.")
        self._session.refresh(updated)
        self._publisher.publish(
            ChangeNotification(topic=Topic.PROFILE_CHANGED, user_id=updated.id)
        )
        return updated


def _merge_profile(profile: UserProfile, update: ProfileUpdate) -> UserProfile:
    """Merge the fields set on `update` into `profile`.

    An explicit None clears a field; `preferences=None` restores the default
    preferences. Nested preference and social-link values merge field-wise.
    """
    changes = update.model_dump(exclude_unset=True)
    has_preferences = "preferences" in changes
    has_social_links = "social_links" in changes
    preferences = changes.pop("preferences", None)
    social_links = changes.pop("social_links", None)
    merged = replace(profile, **changes)
    if has_preferences:
        if preferences is None:
            merged = replace(merged, preferences=Preferences())
        else:
            merged = replace(
                merged,
                preferences=replace(
                    merged.preferences,
                    **{k: v for k, v in preferences.items() if v is not None},
                ),
            )
    if has_social_links:
        if social_links is None:
            merged = replace(merged, social_links=None)
        else:
            merged = replace(
                merged,
                social_links=replace(
                    merged.social_links or SocialLinks(),
                    **{k: v for k, v in social_links.items() if v is not None},
                ),
            )
    return merged
