from __future__ import annotations

import logging

from services.marketplace.application.accounts import AccountService
from services.marketplace.application.dto import BookingSummary, RecordEventCommand
from services.marketplace.application.interfaces import CartRepository
from services.marketplace.application.session import SessionManager
from services.marketplace.domain.cart import cart_total
from services.marketplace.domain.errors import EmptyCartError

LOGGER = logging.getLogger(__name__)


class CheckoutUseCase:
    """Books every worker in the signed-in user's cart."""

    def __init__(
        self,
        *,
        session: SessionManager,
        carts: CartRepository,
        accounts: AccountService,
        service_fee_rate: float,
    ) -> None:
        self._session = session
        self._carts = carts
        self._accounts = accounts
        self._service_fee_rate = service_fee_rate

    def execute(self, event_type: str = "booking") -> BookingSummary:
        user = self._session.require_user()
        items = self._carts.get_cart(user.id)
        if not items:
            raise EmptyCartError("Cart is empty")

        subtotal = round(cart_total(items), 2)
        service_fee = round(subtotal * self._service_fee_rate, 2)
        total = round(subtotal + service_fee, 2)

        event = self._accounts.add_event_to_history(
            RecordEventCommand(
                event_type=event_type,
                workers=[item.id for item in items],
                amount=total,
            )
        )
        self._carts.clear_cart(user.id)
        LOGGER.info(
            "User %s booked %d workers for %.2f", user.id, len(items), total
        )
        return BookingSummary(
            event=event,
            items=items,
            subtotal=subtotal,
            service_fee=service_fee,
            total=total,
        )
