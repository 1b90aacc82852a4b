import asyncio
from dataclasses import replace
from datetime import datetime, timezone

from services.marketplace.application.session import SessionManager
from services.marketplace.domain.cart import CartItem
from services.marketplace.domain.events import ChangeNotification, Topic
from services.marketplace.domain.user import User, UserProfile
from services.marketplace.infrastructure.events import ChangeBus
from services.marketplace.infrastructure.local_store import (
    CURRENT_USER_KEY,
    InMemoryKeyValueBackend,
    KeyedLocalStore,
)
from services.marketplace.infrastructure.users import LocalUserRepository

def _user(user_id: str) -> User:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return User(
        id=user_id,
        name=user_id.title(),
        email=f"{user_id}@x.com",
        created_at=now,
        profile=UserProfile.default(now),
    )


def _repo():
    return LocalUserRepository(KeyedLocalStore(InMemoryKeyValueBackend()))


def test_session_restores_signed_in_user_from_store():
    users = _repo()
    users.set_current(_user("u1"))

    session = SessionManager(users, ChangeBus())

    assert session.user_id == "u1"
    assert asyncio.run(session.current_user_id()) == "u1"


def test_corrupt_current_user_marker_means_anonymous():
    backend = InMemoryKeyValueBackend()
    backend.write(CURRENT_USER_KEY, '{"name": "missing id"}')
    users = LocalUserRepository(KeyedLocalStore(backend))

    session = SessionManager(users, ChangeBus())

    assert session.current_user is None
    assert not session.is_authenticated()


def test_external_sign_out_is_reconciled_on_storage_change():
    users = _repo()
    bus = ChangeBus()
    session = SessionManager(users, bus)
    session.start(_user("u1"))
    seen = []
    bus.subscribe(Topic.AUTH_CHANGED, seen.append)

    users.clear_current()
    bus.publish(ChangeNotification(topic=Topic.STORAGE_CHANGED, key=CURRENT_USER_KEY))

    assert session.current_user is None
    assert [notification.user_id for notification in seen] == [None]


def test_unrelated_storage_change_is_ignored():
    users = _repo()
    bus = ChangeBus()
    session = SessionManager(users, bus)
    session.start(_user("u1"))
    seen = []
    bus.subscribe(Topic.AUTH_CHANGED, seen.append)

    bus.publish(ChangeNotification(topic=Topic.STORAGE_CHANGED, key="cart_u1"))
    session.reconcile()

    assert session.user_id == "u1"
    assert seen == []

def test_external_profile_edit_for_same_user_is_announced():
    users = _repo()
    bus = ChangeBus()
    session = SessionManager(users, bus)
    user = _user("u1")
    session.start(user)
    seen = []
    bus.subscribe(Topic.PROFILE_CHANGED, seen.append)

    edited = replace(user, profile=replace(user.profile, bio="from another tab"))
    users.set_current(edited)
    bus.publish(ChangeNotification(topic=Topic.STORAGE_CHANGED, key=CURRENT_USER_KEY))

    assert session.current_user.profile.bio == "from another tab"
    assert [notification.user_id for notification in seen] == ["u1"]


def test_rewritten_but_identical_marker_is_not_announced():
    users = _repo()
    bus = ChangeBus()
    session = SessionManager(users, bus)
    session.start(_user("u1"))
    seen = []
    bus.subscribe(Topic.PROFILE_CHANGED, seen.append)
    bus.subscribe(Topic.AUTH_CHANGED, seen.append)

    bus.publish(ChangeNotification(topic=Topic.STORAGE_CHANGED, key=CURRENT_USER_KEY))

    assert seen == []



def test_domain_records_survive_serialization():
    user = _user("u1")
    item = CartItem(id="w1", name="Ravi")

    assert User.from_dict(user.to_dict()) == user
    assert item.to_dict() == {"id": "w1", "name": "Ravi"}
