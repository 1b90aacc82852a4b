from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Topic(str, Enum):
    CART_CHANGED = "cart_changed"
    PROFILE_CHANGED = "profile_changed"
    AUTH_CHANGED = "auth_changed"
    STORAGE_CHANGED = "storage_changed"


@dataclass(frozen=True)
class ChangeNotification:
    """Signal that something changed.

    `user_id` names the affected user where one is known; for AUTH_CHANGED it
    is the newly signed-in user, or None after sign-out. `key` is the storage
    key that changed, set for STORAGE_CHANGED.
    """

    topic: Topic
    user_id: str | None = None
    key: str | None = None
