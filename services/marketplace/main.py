"""Composition root: builds the data layer from configuration."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from services.marketplace.application.accounts import AccountService
from services.marketplace.application.checkout import CheckoutUseCase
from services.marketplace.application.facades import (
    CartCountIndicator,
    CartFacade,
    ProfileFacade,
)
from services.marketplace.application.interfaces import KeyValueBackend, Notifier
from services.marketplace.application.session import SessionManager
from services.marketplace.config import MarketplaceConfig, load_config
from services.marketplace.infrastructure.carts import LocalCartRepository
from services.marketplace.infrastructure.db import create_session_factory
from services.marketplace.infrastructure.events import (
    ChangeBus,
    RedisStorageChangeListener,
)
from services.marketplace.infrastructure.ids import PrefixedIdProvider
from services.marketplace.infrastructure.local_store import (
    InMemoryKeyValueBackend,
    KeyedLocalStore,
)
from services.marketplace.infrastructure.notifier import LoggingNotifier
from services.marketplace.infrastructure.redis_store import (
    RedisKeyValueBackend,
    create_redis_client,
)
from services.marketplace.infrastructure.sql_store import SqlKeyValueBackend
from services.marketplace.infrastructure.users import LocalUserRepository
from services.marketplace.infrastructure.workers import (
    FallbackWorkerCatalog,
    StoreWorkerCatalog,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class MarketplaceContainer:
    config: MarketplaceConfig
    bus: ChangeBus
    store: KeyedLocalStore
    session: SessionManager
    carts: LocalCartRepository
    accounts: AccountService
    checkout: CheckoutUseCase
    workers: FallbackWorkerCatalog
    notifier: Notifier
    storage_listener: RedisStorageChangeListener | None = None

    def cart_facade(self) -> CartFacade:
        return CartFacade(
            carts=self.carts,
            identity=self.session,
            publisher=self.bus,
            notifier=self.notifier,
            checkout=self.checkout,
        )

    def cart_count_indicator(self) -> CartCountIndicator:
        return CartCountIndicator(
            carts=self.carts, identity=self.session, publisher=self.bus
        )

    def profile_facade(self) -> ProfileFacade:
        return ProfileFacade(
            accounts=self.accounts,
            identity=self.session,
            publisher=self.bus,
            notifier=self.notifier,
        )

    def start_storage_listener(
        self,
    ) -> tuple[threading.Thread, threading.Event] | None:
        """Run the cross-process change listener on a daemon thread.

        Set the returned event and join the thread to stop it.
        """
        if self.storage_listener is None:
            return None
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self.storage_listener.listen,
            args=(stop_event,),
            name="storage-change-listener",
            daemon=True,
        )
        thread.start()
        return thread, stop_event


def _build_backend(
    cfg: MarketplaceConfig, bus: ChangeBus
) -> tuple[KeyValueBackend, RedisStorageChangeListener | None]:
    if cfg.store_backend == "sql":
        return SqlKeyValueBackend(create_session_factory(cfg.database_url)), None
    if cfg.store_backend == "redis":
        client = create_redis_client(cfg.redis_host, cfg.redis_port, cfg.redis_db)
        backend = RedisKeyValueBackend(
            client, channel=cfg.redis_channel, key_prefix=cfg.redis_key_prefix
        )
        listener = RedisStorageChangeListener(
            client, channel=cfg.redis_channel, origin=backend.origin, bus=bus
        )
        return backend, listener
    return InMemoryKeyValueBackend(), None


def build_container(
    config: MarketplaceConfig | None = None,
    *,
    backend: KeyValueBackend | None = None,
    notifier: Notifier | None = None,
) -> MarketplaceContainer:
    cfg = config or load_config()
    bus = ChangeBus()
    listener = None
    if backend is None:
        backend, listener = _build_backend(cfg, bus)
    store = KeyedLocalStore(backend)

    users = LocalUserRepository(store)
    session = SessionManager(users, bus)
    carts = LocalCartRepository(store, bus)
    accounts = AccountService(
        session=session,
        users=users,
        store=store,
        publisher=bus,
        user_id_provider=PrefixedIdProvider(
            prefix=cfg.user_id_prefix, length=cfg.user_id_length
        ),
        event_id_provider=PrefixedIdProvider(prefix="evt", length=12),
        history_limit=cfg.event_history_limit,
    )
    checkout = CheckoutUseCase(
        session=session,
        carts=carts,
        accounts=accounts,
        service_fee_rate=cfg.service_fee_rate,
    )
    logger.info("Marketplace data layer ready (%s backend)", cfg.store_backend)
    return MarketplaceContainer(
        config=cfg,
        bus=bus,
        store=store,
        session=session,
        carts=carts,
        accounts=accounts,
        checkout=checkout,
        workers=FallbackWorkerCatalog(StoreWorkerCatalog(store)),
        notifier=notifier or LoggingNotifier(),
        storage_listener=listener,
    )


def main() -> None:
    """Relay cross-process storage changes until interrupted."""
    cfg = load_config()
    configure_logging(cfg.log_level)
    container = build_container(cfg)
    started = container.start_storage_listener()
    if started is None:
        logger.info("The %s backend has no change feed to follow", cfg.store_backend)
        return
    thread, stop_event = started
    try:
        while thread.is_alive():
            thread.join(timeout=1.0)
    except KeyboardInterrupt:
        stop_event.set()
        thread.join()


if __name__ == "__main__":
    main()
