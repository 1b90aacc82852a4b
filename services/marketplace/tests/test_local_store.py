import pytest

from services.marketplace.infrastructure.local_store import (
    InMemoryKeyValueBackend,
    KeyedLocalStore,
    cart_key,
    user_data_key,
)


class BrokenBackend:
    def read(self, key: str) -> str | None:
        raise ConnectionError("backend down")

    def write(self, key: str, raw: str) -> None:
        raise ConnectionError("backend down")

    def delete(self, key: str) -> None:
        raise ConnectionError("backend down")


@pytest.fixture
def backend():
    return InMemoryKeyValueBackend()


@pytest.fixture
def store(backend):
    return KeyedLocalStore(backend)


def test_missing_key_returns_default(store):
    assert store.get("nothing") is None
    assert store.get("nothing", []) == []


def test_value_written_is_read_back(store):
    value = {"id": "w1", "tags": ["a", "b"], "price": 50}

    assert store.set("k", value) is True
    assert store.get("k") == value


def test_malformed_json_is_treated_as_absent(backend, store):
    backend.write("k", "{not json")

    assert store.get("k", "fallback") == "fallback"


def test_remove_deletes_key(store):
    store.set("k", 1)
    store.remove("k")
    store.remove("k")

    assert store.get("k") is None


def test_unserializable_value_is_not_written(store):
    assert store.set("k", object()) is False
    assert store.get("k") is None


def test_backend_failures_degrade_to_defaults():
    store = KeyedLocalStore(BrokenBackend())

    assert store.get("k", []) == []
    assert store.set("k", [1]) is False
    store.remove("k")


def test_key_layout():
    assert cart_key("u1") == "cart_u1"
    assert user_data_key("u1", "drafts") == "user_u1_drafts"


def test_prefixed_ids_are_unique_and_sized():
    from services.marketplace.infrastructure.ids import PrefixedIdProvider

    provider = PrefixedIdProvider(prefix="usr", length=16)
    ids = {provider.generate() for _ in range(50)}

    assert len(ids) == 50
    assert all(value.startswith("usr_") and len(value) == 20 for value in ids)
    with pytest.raises(ValueError):
        PrefixedIdProvider(prefix="usr", length=4)
