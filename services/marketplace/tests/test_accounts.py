import itertools

import pytest
from pydantic import ValidationError

from services.marketplace.application.accounts import AccountService
from services.marketplace.application.dto import (
    LoginCommand,
    ProfileUpdate,
    RecordEventCommand,
    RegisterCommand,
)
from services.marketplace.application.session import SessionManager
from services.marketplace.domain.errors import (
    AlreadyFavoriteError,
    NotLoggedInError,
    StorageWriteError,
    UserExistsError,
    UserNotFoundError,
)
from services.marketplace.domain.events import Topic
from services.marketplace.infrastructure.events import ChangeBus
from services.marketplace.infrastructure.local_store import (
    InMemoryKeyValueBackend,
    KeyedLocalStore,
)
from services.marketplace.infrastructure.users import LocalUserRepository


class SequentialIds:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self._prefix}{next(self._counter)}"


class SpyStore(KeyedLocalStore):
    def __init__(self, backend) -> None:
        super().__init__(backend)
        self.reads: list[str] = []

    def get(self, key, default=None):
        self.reads.append(key)
        return super().get(key, default)


@pytest.fixture
def store():
    return SpyStore(InMemoryKeyValueBackend())


@pytest.fixture
def bus():
    return ChangeBus()


@pytest.fixture
def users(store):
    return LocalUserRepository(store)


@pytest.fixture
def session(users, bus):
    return SessionManager(users, bus)


@pytest.fixture
def accounts(session, users, store, bus):
    return AccountService(
        session=session,
        users=users,
        store=store,
        publisher=bus,
        user_id_provider=SequentialIds("u"),
        event_id_provider=SequentialIds("e"),
    )


def _register(accounts, email="a@x.com", name="Asha"):
    return accounts.register(RegisterCommand(name=name, email=email, password="pw"))


def test_register_creates_current_user_with_default_profile(accounts, users):
    user = _register(accounts)

    assert user.id == "u1"
    assert accounts.get_current_user() == user
    assert accounts.is_authenticated()
    assert user.profile.favorites == ()
    assert user.profile.event_history == ()
    assert user.profile.preferences.language == "en"
    assert user.profile.preferences.notifications is True
    assert user.profile.preferences.email_updates is False
    assert [u.id for u in users.list_users()] == ["u1"]


def test_register_duplicate_email_fails_and_keeps_current_user(accounts):
    first = _register(accounts)

    with pytest.raises(UserExistsError):
        _register(accounts, name="Someone else")

    assert accounts.get_current_user() == first


def test_login_unknown_email_fails(accounts):
    with pytest.raises(UserNotFoundError):
        accounts.login(LoginCommand(email="ghost@x.com", password="pw"))
    assert accounts.get_current_user() is None


def test_login_accepts_any_password_for_registered_email(accounts):
    user = _register(accounts)
    accounts.logout()

    logged_in = accounts.login(LoginCommand(email="a@x.com", password="wrong"))

    assert logged_in.id == user.id
    assert accounts.get_current_user().id == user.id


def test_logout_keeps_registered_users(accounts, users):
    _register(accounts)

    accounts.logout()

    assert accounts.get_current_user() is None
    assert users.get_current() is None
    assert users.get_by_email("a@x.com") is not None


def test_auth_transitions_publish_auth_changed(accounts, bus):
    seen = []
    bus.subscribe(Topic.AUTH_CHANGED, seen.append)

    _register(accounts)
    accounts.logout()

    assert [notification.user_id for notification in seen] == ["u1", None]


def test_anonymous_mutations_fail_with_not_logged_in(accounts):
    with pytest.raises(NotLoggedInError):
        accounts.update_profile(ProfileUpdate(bio="hi"))
    with pytest.raises(NotLoggedInError):
        accounts.add_to_favorites("w1")
    with pytest.raises(NotLoggedInError):
        accounts.remove_from_favorites("w1")
    with pytest.raises(NotLoggedInError):
        accounts.add_event_to_history(RecordEventCommand(event_type="wedding"))


def test_update_profile_merges_and_persists(accounts, users):
    user = _register(accounts)
    accounts.update_profile(ProfileUpdate(city="Hyderabad", bio="Planner"))

    updated = accounts.update_profile(
        ProfileUpdate(bio="Event planner", preferences={"language": "te"})
    )

    assert updated.profile.city == "Hyderabad"
    assert updated.profile.bio == "Event planner"
    assert updated.profile.preferences.language == "te"
    assert updated.profile.preferences.notifications is True
    assert updated.profile.updated_at >= user.profile.updated_at
    assert users.get_current() == updated
    assert users.get_by_email("a@x.com") == updated


def test_update_profile_merges_social_links(accounts):
    _register(accounts)
    accounts.update_profile(ProfileUpdate(social_links={"facebook": "fb/asha"}))

    updated = accounts.update_profile(ProfileUpdate(social_links={"twitter": "@asha"}))

    assert updated.profile.social_links.facebook == "fb/asha"
    assert updated.profile.social_links.twitter == "@asha"


def test_profile_update_rejects_unknown_fields_and_bad_gender():
    with pytest.raises(ValidationError):
        ProfileUpdate(nickname="x")
    with pytest.raises(ValidationError):
        ProfileUpdate(gender="robot")


def test_profile_update_publishes_profile_changed(accounts, bus):
    _register(accounts)
    seen = []
    bus.subscribe(Topic.PROFILE_CHANGED, seen.append)

    accounts.update_profile(ProfileUpdate(company="Acme"))

    assert seen[0].user_id == "u1"


def test_favorites_are_unique(accounts):
    _register(accounts)
    accounts.add_to_favorites("w1")

    with pytest.raises(AlreadyFavoriteError):
        accounts.add_to_favorites("w1")

    assert accounts.get_current_user().profile.favorites == ("w1",)


def test_removing_non_favorite_is_noop(accounts):
    _register(accounts)
    accounts.add_to_favorites("w1")

    accounts.remove_from_favorites("w2")
    user = accounts.remove_from_favorites("w1")

    assert user.profile.favorites == ()


def test_event_history_is_bounded_and_newest_first(accounts):
    _register(accounts)

    for index in range(60):
        last = accounts.add_event_to_history(
            RecordEventCommand(event_type="birthday", workers=["w1"], amount=index)
        )

    history = accounts.get_current_user().profile.event_history
    assert len(history) == 50
    assert history[0] == last
    assert history[0].amount == 59
    assert history[-1].amount == 10


def test_user_data_round_trip_for_current_user(accounts):
    user = _register(accounts)

    assert accounts.set_user_data(user.id, "drafts", {"note": "x"}) is True
    assert accounts.get_user_data(user.id, "drafts", None) == {"note": "x"}


def test_user_data_of_other_user_is_denied_without_reading(accounts, store):
    other = _register(accounts, email="b@x.com", name="Bala")
    accounts.set_user_data(other.id, "drafts", {"secret": True})
    accounts.logout()
    _register(accounts)
    store.reads.clear()

    assert accounts.get_user_data(other.id, "drafts", "default") == "default"
    assert accounts.set_user_data(other.id, "drafts", {}) is False
    assert f"user_{other.id}_drafts" not in store.reads


def test_user_data_denied_while_anonymous(accounts):
    assert accounts.get_user_data("u1", "drafts", []) == []
    assert accounts.set_user_data("u1", "drafts", [1]) is False


def test_get_user_profile_of_other_user_is_denied(accounts):
    user = _register(accounts)

    assert accounts.get_user_profile() == user.profile
    assert accounts.get_user_profile(user.id) == user.profile
    assert accounts.get_user_profile("someone-else") is None


class FlakyBackend(InMemoryKeyValueBackend):
    def __init__(self) -> None:
        super().__init__()
        self.failing_keys: set[str] = set()

    def write(self, key: str, raw: str) -> None:
        if key in self.failing_keys:
            raise ConnectionError(f"cannot write {key}")
        super().write(key, raw)


def _accounts_over(backend):
    store = KeyedLocalStore(backend)
    users = LocalUserRepository(store)
    bus = ChangeBus()
    session = SessionManager(users, bus)
    accounts = AccountService(
        session=session,
        users=users,
        store=store,
        publisher=bus,
        user_id_provider=SequentialIds("u"),
        event_id_provider=SequentialIds("e"),
    )
    return accounts, users, session


def test_failed_registry_write_leaves_profile_untouched_everywhere():
    backend = FlakyBackend()
    accounts, users, session = _accounts_over(backend)
    _register(accounts)
    backend.failing_keys.add("registered_users")

    with pytest.raises(StorageWriteError):
        accounts.update_profile(ProfileUpdate(bio="new"))

    assert session.current_user.profile.bio is None
    assert users.get_current().profile.bio is None
    assert users.get_by_email("a@x.com").profile.bio is None


def test_profile_update_for_unregistered_account_fails(accounts, users, store):
    _register(accounts)
    store.set("registered_users", [])

    with pytest.raises(UserNotFoundError):
        accounts.add_to_favorites("w1")

    assert accounts.get_current_user().profile.favorites == ()
    assert users.get_current().profile.favorites == ()


def test_account_with_bad_history_entry_survives_other_registrations(accounts, store):
    store.set(
        "registered_users",
        [
            {
                "id": "b1",
                "name": "Bala",
                "email": "b@x.com",
                "created_at": "2024-01-01T00:00:00Z",
                "profile": {"eventHistory": [{"id": "e0", "date": "2024-01-01"}]},
            }
        ],
    )

    _register(accounts, email="c@x.com")

    emails = [entry["email"] for entry in store.get("registered_users")]
    assert emails == ["b@x.com", "c@x.com"]
    bala = accounts.login(LoginCommand(email="b@x.com", password="pw"))
    assert bala.profile.event_history == ()


def test_undecodable_accounts_are_kept_and_block_their_email(accounts, store):
    broken = {"id": "b1", "email": "b@x.com"}
    store.set("registered_users", [broken])

    with pytest.raises(UserExistsError):
        _register(accounts, email="b@x.com")
    user = _register(accounts, email="c@x.com")
    accounts.update_profile(ProfileUpdate(city="Vizag"))

    stored = store.get("registered_users")
    assert stored[0] == broken
    assert stored[1]["id"] == user.id
    assert stored[1]["profile"]["city"] == "Vizag"


def test_explicit_none_clears_social_links_and_resets_preferences(accounts):
    _register(accounts)
    accounts.update_profile(
        ProfileUpdate(
            social_links={"instagram": "@asha"},
            preferences={"language": "te", "email_updates": True},
        )
    )

    updated = accounts.update_profile(ProfileUpdate(social_links=None, preferences=None))

    assert updated.profile.social_links is None
    assert updated.profile.preferences.language == "en"
    assert updated.profile.preferences.email_updates is False
