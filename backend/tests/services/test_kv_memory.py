from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from querydesk_backend.app.services.kv import InMemoryKeyValueStore


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def kv(clock: _Clock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


def test_set_get_and_expiry(kv: InMemoryKeyValueStore, clock: _Clock) -> None:
    kv.set("a", "1", ttl_seconds=10)
    kv.set("b", "2")

    clock.advance(seconds=9)
    assert kv.get("a") == "1"

    clock.advance(seconds=1)
    assert kv.get("a") is None
    assert kv.get("b") == "2"


def test_expire_extends_only_live_keys(kv: InMemoryKeyValueStore, clock: _Clock) -> None:
    kv.set("a", "1", ttl_seconds=10)

    clock.advance(seconds=5)
    assert kv.expire("a", 10) is True
    assert kv.expire("missing", 10) is False

    clock.advance(seconds=8)
    assert kv.get("a") == "1"
    assert kv.ttl("a") == pytest.approx(2)


def test_delete_counts_existing_keys(kv: InMemoryKeyValueStore) -> None:
    kv.set("a", "1")
    kv.add_to_set("s", "x")

    assert kv.delete("a", "s", "missing") == 2
    assert kv.delete() == 0


def test_scan_matches_glob(kv: InMemoryKeyValueStore) -> None:
    kv.set("session:1", "{}")
    kv.set("session:2", "{}")
    kv.set("schema:1", "text")

    assert sorted(kv.scan("session:*")) == ["session:1", "session:2"]


def test_set_members_and_ttl(kv: InMemoryKeyValueStore, clock: _Clock) -> None:
    kv.add_to_set("idx", "k1", ttl_seconds=10)
    kv.add_to_set("idx", "k2", ttl_seconds=10)

    assert kv.set_members("idx") == {"k1", "k2"}
    assert kv.set_members("missing") == set()

    clock.advance(seconds=11)
    assert kv.set_members("idx") == set()


def test_get_on_set_raises(kv: InMemoryKeyValueStore) -> None:
    kv.add_to_set("idx", "k1")

    with pytest.raises(TypeError):
        kv.get("idx")
