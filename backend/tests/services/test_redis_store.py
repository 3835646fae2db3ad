from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import redis
from querydesk_backend.app.services.errors import StoreError
from querydesk_backend.app.services.kv import RedisKeyValueStore


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=redis.Redis)


@pytest.fixture
def store(client: MagicMock) -> RedisKeyValueStore:
    return RedisKeyValueStore(key_prefix="qd:", client=client)


def test_set_applies_prefix_and_ttl(store: RedisKeyValueStore, client: MagicMock) -> None:
    store.set("session:abc", "{}", ttl_seconds=60)

    client.set.assert_called_once_with("qd:session:abc", "{}", ex=60)


def test_get_returns_client_value(store: RedisKeyValueStore, client: MagicMock) -> None:
    client.get.return_value = "value"

    assert store.get("schema:abc") == "value"
    client.get.assert_called_once_with("qd:schema:abc")


def test_delete_without_keys_skips_round_trip(store: RedisKeyValueStore, client: MagicMock) -> None:
    assert store.delete() == 0
    client.delete.assert_not_called()


def test_delete_prefixes_every_key(store: RedisKeyValueStore, client: MagicMock) -> None:
    client.delete.return_value = 2

    assert store.delete("a", "b") == 2
    client.delete.assert_called_once_with("qd:a", "qd:b")


def test_scan_strips_prefix(store: RedisKeyValueStore, client: MagicMock) -> None:
    client.scan_iter.return_value = iter(["qd:session:1", "qd:session:2"])

    assert list(store.scan("session:*")) == ["session:1", "session:2"]
    client.scan_iter.assert_called_once_with(match="qd:session:*", count=500)


def test_add_to_set_uses_pipeline(store: RedisKeyValueStore, client: MagicMock) -> None:
    pipe = MagicMock()
    client.pipeline.return_value = pipe

    store.add_to_set("cache-index:abc", "cache:query:abc:ff", ttl_seconds=30)

    pipe.sadd.assert_called_once_with("qd:cache-index:abc", "cache:query:abc:ff")
    pipe.expire.assert_called_once_with("qd:cache-index:abc", 30)
    pipe.execute.assert_called_once_with()


def test_redis_errors_become_store_errors(store: RedisKeyValueStore, client: MagicMock) -> None:
    client.get.side_effect = redis.ConnectionError("connection refused")

    with pytest.raises(StoreError, match="connection refused"):
        store.get("session:abc")


def test_ping_reports_failure(store: RedisKeyValueStore, client: MagicMock) -> None:
    client.ping.side_effect = redis.ConnectionError("down")

    assert store.ping() is False
