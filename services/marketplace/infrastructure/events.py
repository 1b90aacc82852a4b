from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from redis import Redis

from services.marketplace.application.interfaces import ChangePublisher
from services.marketplace.domain.events import ChangeNotification, Topic

LOGGER = logging.getLogger(__name__)

Callback = Callable[[ChangeNotification], None]


class BusSubscription:
    def __init__(self, bus: "ChangeBus", topic: Topic, callback: Callback) -> None:
        self._bus = bus
        self.topic = topic
        self.callback = callback

    def unsubscribe(self) -> None:
        self._bus._remove(self)


class ChangeBus(ChangePublisher):
    """In-process fan-out of change notifications.

    Delivery goes to the subscribers registered when `publish` is called.
    A subscriber that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[Topic, list[BusSubscription]] = {}

    def subscribe(self, topic: Topic, callback: Callback) -> BusSubscription:
        subscription = BusSubscription(self, topic, callback)
        self._subscriptions.setdefault(topic, []).append(subscription)
        return subscription

    def publish(self, notification: ChangeNotification) -> None:
        for subscription in list(self._subscriptions.get(notification.topic, [])):
            try:
                subscription.callback(notification)
            except Exception:
                LOGGER.exception(
                    "Subscriber failed while handling %s", notification.topic.value
                )

    def subscriber_count(self, topic: Topic) -> int:
        return len(self._subscriptions.get(topic, []))

    def _remove(self, subscription: BusSubscription) -> None:
        subscribers = self._subscriptions.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)


class RedisStorageChangeListener:
    """Relays storage changes made by other processes onto the local bus.

    Best-effort: messages published while the listener is not running are
    lost, and the relayed notification may arrive after a local read already
    observed the new value.
    """

    def __init__(self, client: Redis, *, channel: str, origin: str, bus: ChangePublisher) -> None:
        self._client = client
        self._channel = channel
        self._origin = origin
        self._bus = bus

    def handle_message(self, message: Mapping[str, Any]) -> bool:
        if message.get("type") != "message":
            return False
        try:
            payload = json.loads(message["data"])
        except (KeyError, TypeError, json.JSONDecodeError):
            return False
        key = payload.get("key") if isinstance(payload, dict) else None
        if not key or payload.get("origin") == self._origin:
            return False
        LOGGER.debug("Storage key %s changed in another process", key)
        self._bus.publish(ChangeNotification(topic=Topic.STORAGE_CHANGED, key=key))
        return True

    def listen(self, stop_event=None, *, poll_interval: float = 1.0) -> None:
        """Relay messages until `stop_event` is set.

        Polls with a timeout so a stop request is noticed within
        `poll_interval` seconds even when no messages arrive.
        """
        pubsub = self._client.pubsub()
        pubsub.subscribe(self._channel)
        LOGGER.info("Listening for storage changes on channel %r", self._channel)
        try:
            while not (stop_event and stop_event.is_set()):
                message = pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=poll_interval
                )
                if message is not None:
                    self.handle_message(message)
        finally:
            pubsub.close()
