"""Reactive wrappers that UI surfaces bind to.

A façade keeps an in-memory copy of what its surface renders and re-reads it
from the repositories whenever the bus reports a relevant change. Façade
methods never raise business errors: they return an `ActionResult` and
emit a transient notification instead.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from services.marketplace.application.accounts import AccountService
from services.marketplace.application.checkout import CheckoutUseCase
from services.marketplace.application.dto import (
    ActionResult,
    LoginCommand,
    ProfileUpdate,
    RegisterCommand,
)
from services.marketplace.application.interfaces import (
    CartRepository,
    ChangePublisher,
    IdentityProvider,
    Notifier,
    Subscription,
)
from services.marketplace.domain.cart import CartItem, cart_total
from services.marketplace.domain.errors import DuplicateItemError, MarketplaceError
from services.marketplace.domain.events import ChangeNotification, Topic
from services.marketplace.domain.user import User, UserProfile
from services.marketplace.domain.worker import Worker
from services.marketplace.infrastructure.local_store import cart_key

LOGGER = logging.getLogger(__name__)

SIGN_IN_REQUIRED = "Please sign in to continue."


class _Facade:
    def __init__(self, *, identity: IdentityProvider, publisher: ChangePublisher) -> None:
        self._identity = identity
        self._publisher = publisher
        self._subscriptions: list[Subscription] = []
        self.user_id: str | None = None

    @property
    def mounted(self) -> bool:
        return bool(self._subscriptions)

    async def mount(self) -> None:
        self.user_id = await self._identity.current_user_id()
        self.reload()
        if not self._subscriptions:
            for topic, handler in self._handlers().items():
                self._subscriptions.append(self._publisher.subscribe(topic, handler))

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()

    def reload(self) -> None:
        raise NotImplementedError

    def _handlers(self) -> dict[Topic, Callable[[ChangeNotification], None]]:
        raise NotImplementedError

    def _on_auth_changed(self, notification: ChangeNotification) -> None:
        self.user_id = notification.user_id
        self.reload()


class CartCountIndicator(_Facade):
    """Number of items in the signed-in user's cart (the navbar badge)."""

    def __init__(
        self,
        *,
        carts: CartRepository,
        identity: IdentityProvider,
        publisher: ChangePublisher,
    ) -> None:
        super().__init__(identity=identity, publisher=publisher)
        self._carts = carts
        self.count = 0

    def reload(self) -> None:
        self.count = len(self._carts.get_cart(self.user_id)) if self.user_id else 0

    def _handlers(self):
        return {
            Topic.CART_CHANGED: self._on_cart_changed,
            Topic.AUTH_CHANGED: self._on_auth_changed,
            Topic.STORAGE_CHANGED: self._on_storage_changed,
        }

    def _on_cart_changed(self, notification: ChangeNotification) -> None:
        if notification.user_id in (None, self.user_id):
            self.reload()

    def _on_storage_changed(self, notification: ChangeNotification) -> None:
        if self.user_id and notification.key == cart_key(self.user_id):
            self.reload()


class CartFacade(CartCountIndicator):
    def __init__(
        self,
        *,
        carts: CartRepository,
        identity: IdentityProvider,
        publisher: ChangePublisher,
        notifier: Notifier,
        checkout: CheckoutUseCase | None = None,
    ) -> None:
        super().__init__(carts=carts, identity=identity, publisher=publisher)
        self._notifier = notifier
        self._checkout = checkout
        self.items: list[CartItem] = []

    def reload(self) -> None:
        self.items = self._carts.get_cart(self.user_id) if self.user_id else []
        self.count = len(self.items)

    @property
    def total_price(self) -> float:
        return cart_total(self.items)

    def is_in_cart(self, worker_id: str) -> bool:
        return any(item.id == worker_id for item in self.items)

    def add_to_cart(self, item: CartItem) -> ActionResult:
        if self.user_id is None:
            return self._sign_in_required()
        try:
            self._carts.add_to_cart(self.user_id, item)
        except DuplicateItemError as exc:
            self._notifier.notify("Already in Cart", f"{item.name} is already in your cart.")
            return ActionResult(success=False, error=str(exc))
        except MarketplaceError as exc:
            return self._failed("Could not add to cart", exc)
        self._notifier.notify("Added to Cart", f"{item.name} has been added to your cart.")
        return ActionResult(success=True, value=item)

    def add_worker(self, worker: Worker) -> ActionResult:
        return self.add_to_cart(
            CartItem.from_worker(worker, added_at=datetime.now(timezone.utc))
        )

    def remove_from_cart(self, worker_id: str) -> ActionResult:
        if self.user_id is None:
            return self._sign_in_required()
        try:
            self._carts.remove_from_cart(self.user_id, worker_id)
        except MarketplaceError as exc:
            return self._failed("Could not remove from cart", exc)
        self._notifier.notify("Removed from Cart", "Professional removed from your cart.")
        return ActionResult(success=True)

    def clear_cart(self) -> ActionResult:
        if self.user_id is None:
            return self._sign_in_required()
        self._carts.clear_cart(self.user_id)
        return ActionResult(success=True)

    def checkout(self, event_type: str = "booking") -> ActionResult:
        if self.user_id is None:
            return self._sign_in_required()
        if self._checkout is None:
            raise RuntimeError("CartFacade was built without a checkout use case")
        try:
            summary = self._checkout.execute(event_type)
        except MarketplaceError as exc:
            return self._failed("Booking failed", exc)
        count = len(summary.items)
        plural = "s" if count > 1 else ""
        self._notifier.notify(
            "Booking Confirmed!",
            f"Successfully booked {count} professional{plural}. "
            "You will receive confirmation shortly.",
        )
        return ActionResult(success=True, value=summary)

    def _sign_in_required(self) -> ActionResult:
        self._notifier.notify("Sign in required", SIGN_IN_REQUIRED, variant="destructive")
        return ActionResult(success=False, error=SIGN_IN_REQUIRED)

    def _failed(self, title: str, exc: MarketplaceError) -> ActionResult:
        LOGGER.error("%s: %s", title, exc)
        self._notifier.notify(title, str(exc), variant="destructive")
        return ActionResult(success=False, error=str(exc))


class ProfileFacade(_Facade):
    def __init__(
        self,
        *,
        accounts: AccountService,
        identity: IdentityProvider,
        publisher: ChangePublisher,
        notifier: Notifier,
    ) -> None:
        super().__init__(identity=identity, publisher=publisher)
        self._accounts = accounts
        self._notifier = notifier
        self.user: User | None = None

    @property
    def profile(self) -> UserProfile | None:
        return self.user.profile if self.user else None

    def reload(self) -> None:
        user = self._accounts.get_current_user()
        self.user = user if user is not None and user.id == self.user_id else None

    def is_favorite(self, worker_id: str) -> bool:
        return self.profile is not None and worker_id in self.profile.favorites

    def register(self, command: RegisterCommand) -> ActionResult:
        return self._run(
            lambda: self._accounts.register(command),
            "Registration failed",
            success=("Welcome!", f"Account created for {command.email}."),
            requires_user=False,
        )

    def login(self, command: LoginCommand) -> ActionResult:
        return self._run(
            lambda: self._accounts.login(command),
            "Login failed",
            success=("Welcome back!", "Signed in successfully."),
            requires_user=False,
        )

    def logout(self) -> ActionResult:
        self._accounts.logout()
        self._notifier.notify("Success", "Signed out successfully")
        return ActionResult(success=True)

    def update_profile(self, update: ProfileUpdate) -> ActionResult:
        return self._run(
            lambda: self._accounts.update_profile(update),
            "Profile update failed",
            success=("Profile Updated", "Your profile has been saved."),
        )

    def add_to_favorites(self, worker_id: str) -> ActionResult:
        return self._run(
            lambda: self._accounts.add_to_favorites(worker_id),
            "Could not add favorite",
            success=("Added to Favorites", "Worker saved to your favorites."),
        )

    def remove_from_favorites(self, worker_id: str) -> ActionResult:
        return self._run(
            lambda: self._accounts.remove_from_favorites(worker_id),
            "Could not remove favorite",
            success=("Removed from Favorites", "Worker removed from your favorites."),
        )

    def toggle_favorite(self, worker_id: str) -> ActionResult:
        if self.is_favorite(worker_id):
            return self.remove_from_favorites(worker_id)
        return self.add_to_favorites(worker_id)

    def _handlers(self):
        return {
            Topic.PROFILE_CHANGED: self._on_profile_changed,
            Topic.AUTH_CHANGED: self._on_auth_changed,
        }

    def _on_profile_changed(self, notification: ChangeNotification) -> None:
        if notification.user_id == self.user_id:
            self.reload()

    def _run(
        self,
        action: Callable[[], object],
        failure_title: str,
        *,
        success: tuple[str, str],
        requires_user: bool = True,
    ) -> ActionResult:
        if requires_user and self.user_id is None:
            self._notifier.notify("Sign in required", SIGN_IN_REQUIRED, variant="destructive")
            return ActionResult(success=False, error=SIGN_IN_REQUIRED)
        try:
            value = action()
        except MarketplaceError as exc:
            self._notifier.notify(failure_title, str(exc), variant="destructive")
            return ActionResult(success=False, error=str(exc))
        self._notifier.notify(*success)
        return ActionResult(success=True, value=value)
