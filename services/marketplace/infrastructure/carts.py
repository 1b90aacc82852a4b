"""Per-user carts kept in the keyed store under `cart_<userId>`."""

from __future__ import annotations

import logging

from services.marketplace.application.interfaces import ChangePublisher, CartRepository, KeyedStore
from services.marketplace.domain.cart import CartItem
from services.marketplace.domain.errors import DuplicateItemError, StorageWriteError
from services.marketplace.domain.events import ChangeNotification, Topic
from services.marketplace.infrastructure.local_store import cart_key

LOGGER = logging.getLogger(__name__)


class LocalCartRepository(CartRepository):
    def __init__(self, store: KeyedStore, publisher: ChangePublisher) -> None:
        self._store = store
        self._publisher = publisher

    def get_cart(self, user_id: str) -> list[CartItem]:
        raw = self._store.get(cart_key(user_id), [])
        if not isinstance(raw, list):
            LOGGER.warning("Cart for %s is not a list, treating it as empty", user_id)
            return []
        items: list[CartItem] = []
        for entry in raw:
            try:
                items.append(CartItem.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError):
                LOGGER.warning("Skipping malformed cart entry for %s: %r", user_id, entry)
        return items

    def add_to_cart(self, user_id: str, item: CartItem) -> None:
        cart = self.get_cart(user_id)
        if any(existing.id == item.id for existing in cart):
            raise DuplicateItemError(f"{item.name} is already in the cart")
        cart.append(item)
        self._save(user_id, cart)

    def remove_from_cart(self, user_id: str, item_id: str) -> None:
        cart = [item for item in self.get_cart(user_id) if item.id != item_id]
        self._save(user_id, cart)

    def clear_cart(self, user_id: str) -> None:
        self._store.remove(cart_key(user_id))
        self._notify(user_id)

    def _save(self, user_id: str, cart: list[CartItem]) -> None:
        if not self._store.set(cart_key(user_id), [item.to_dict() for item in cart]):
            raise StorageWriteError("Cart could not be saved")
        self._notify(user_id)

    def _notify(self, user_id: str) -> None:
        self._publisher.publish(
            ChangeNotification(topic=Topic.CART_CHANGED, user_id=user_id)
        )
