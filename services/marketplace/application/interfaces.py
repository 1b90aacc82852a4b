from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Literal, Protocol

if TYPE_CHECKING:
    from services.marketplace.domain.cart import CartItem
    from services.marketplace.domain.events import ChangeNotification, Topic
    from services.marketplace.domain.user import User
    from services.marketplace.domain.worker import Worker


class IdProvider(Protocol):
    def generate(self) -> str: ...


class KeyValueBackend(Protocol):
    """Raw string storage underneath the keyed store."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, raw: str) -> None: ...

    def delete(self, key: str) -> None: ...


class KeyedStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...

    def remove(self, key: str) -> None: ...


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class ChangePublisher(Protocol):
    def publish(self, notification: "ChangeNotification") -> None: ...

    def subscribe(
        self, topic: "Topic", callback: Callable[["ChangeNotification"], None]
    ) -> Subscription: ...


class CartRepository(Protocol):
    def get_cart(self, user_id: str) -> list["CartItem"]: ...

    def add_to_cart(self, user_id: str, item: "CartItem") -> None: ...

    def remove_from_cart(self, user_id: str, item_id: str) -> None: ...

    def clear_cart(self, user_id: str) -> None: ...


class UserRepository(Protocol):
    def list_users(self) -> list["User"]: ...

    def get_by_email(self, email: str) -> "User" | None: ...

    def has_email(self, email: str) -> bool: ...

    def create(self, user: "User") -> "User": ...

    def update(self, user: "User") -> bool: ...

    def get_current(self) -> "User" | None: ...

    def set_current(self, user: "User") -> None: ...

    def clear_current(self) -> None: ...


class IdentityProvider(Protocol):
    async def current_user_id(self) -> str | None: ...


class Notifier(Protocol):
    """Transient user-facing messages (toasts)."""

    def notify(
        self,
        title: str,
        description: str,
        *,
        variant: Literal["default", "destructive"] = "default",
    ) -> None: ...


class WorkerCatalog(Protocol):
    def get_all(self) -> list["Worker"]: ...

    def get_by_id(self, worker_id: str) -> "Worker" | None: ...

    def get_by_category(self, category_id: str) -> list["Worker"]: ...

    def get_featured(self, limit: int = 6) -> list["Worker"]: ...
