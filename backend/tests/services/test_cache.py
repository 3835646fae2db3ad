from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Dict, Iterator

import pytest
from querydesk_backend.app.services.cache import CacheIndex, QueryResultCache, SchemaCache
from querydesk_backend.app.services.cache.keys import fingerprint, index_key, result_key, schema_key
from querydesk_backend.app.services.cache.schema_cache import NO_TABLE_MESSAGE, has_schema
from querydesk_backend.app.services.kv import InMemoryKeyValueStore
from querydesk_backend.app.services.sessions import Workspace
from querydesk_backend.app.services.tables import TableLifecycleManager
from querydesk_backend.app.services.warehouse import Warehouse


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def warehouse() -> Iterator[Warehouse]:
    warehouse = Warehouse(":memory:")
    yield warehouse
    warehouse.close()


@pytest.fixture
def cache_index(kv: InMemoryKeyValueStore) -> CacheIndex:
    return CacheIndex(kv, ttl_seconds=86400)


@pytest.fixture
def workspace() -> Workspace:
    now = datetime(2024, 1, 1, tzinfo=UTC)
    return Workspace(id="abc123", table_name="data_abc123", created_at=now, last_used_at=now)


class _CountingExecutor:
    def __init__(self, payload: Dict[str, Any]) -> None:
        self.payload = payload
        self.calls = 0

    def __call__(self) -> Dict[str, Any]:
        self.calls += 1
        return dict(self.payload)


class TestKeys:
    def test_fingerprint_is_sha256_hex(self) -> None:
        digest = fingerprint("SELECT 1")

        assert len(digest) == 64
        assert digest == fingerprint("SELECT 1")

    def test_fingerprint_is_whitespace_and_case_sensitive(self) -> None:
        assert fingerprint("SELECT 1") != fingerprint("select 1")
        assert fingerprint("SELECT 1") != fingerprint("SELECT  1")

    def test_result_key_layout(self) -> None:
        key = result_key("natural", "abc", "how many rows?")

        assert key == f"cache:natural:abc:{fingerprint('how many rows?')}"

    def test_query_and_natural_keys_differ(self) -> None:
        assert result_key("query", "abc", "x") != result_key("natural", "abc", "x")


class TestSchemaCache:
    def test_no_table_returns_sentinel_uncached(
        self, kv: InMemoryKeyValueStore, warehouse: Warehouse, workspace: Workspace
    ) -> None:
        cache = SchemaCache(kv, warehouse, ttl_seconds=86400)

        assert cache.describe(workspace) == NO_TABLE_MESSAGE
        assert kv.get(schema_key(workspace.id)) is None
        assert has_schema(NO_TABLE_MESSAGE) is False

    def test_describe_formats_and_caches(
        self,
        kv: InMemoryKeyValueStore,
        warehouse: Warehouse,
        cache_index: CacheIndex,
        workspace: Workspace,
    ) -> None:
        TableLifecycleManager(warehouse, cache_index).replace(workspace, ["name", "age"], [["Alice", "30"]])
        cache = SchemaCache(kv, warehouse, ttl_seconds=86400)

        text = cache.describe(workspace)

        assert text == "Table: data_abc123\nColumns:\n  - name (VARCHAR)\n  - age (VARCHAR)\n"
        assert kv.get(schema_key(workspace.id)) == text
        assert kv.ttl(schema_key(workspace.id)) == pytest.approx(86400, abs=5)

    def test_cached_text_is_served_without_touching_store(
        self, kv: InMemoryKeyValueStore, warehouse: Warehouse, workspace: Workspace
    ) -> None:
        kv.set(schema_key(workspace.id), "Table: data_abc123\nColumns:\n  - x (VARCHAR)\n")
        cache = SchemaCache(kv, warehouse, ttl_seconds=86400)

        assert cache.describe(workspace).endswith("x (VARCHAR)\n")


class TestQueryResultCache:
    def test_miss_then_hit(
        self, kv: InMemoryKeyValueStore, cache_index: CacheIndex, workspace: Workspace
    ) -> None:
        cache = QueryResultCache(kv, cache_index, ttl_seconds=3600)
        executor = _CountingExecutor({"columns": ["n"], "data": [{"n": 1}]})

        first, first_cached = cache.run_cached(workspace, "SELECT 1 AS n", "query", executor)
        second, second_cached = cache.run_cached(workspace, "SELECT 1 AS n", "query", executor)

        assert executor.calls == 1
        assert first_cached is False
        assert second_cached is True
        assert "runtime_ms" in first
        assert second == json.loads(json.dumps(first))

    def test_entry_has_result_ttl_and_is_indexed(
        self, kv: InMemoryKeyValueStore, cache_index: CacheIndex, workspace: Workspace
    ) -> None:
        cache = QueryResultCache(kv, cache_index, ttl_seconds=3600)
        cache.run_cached(workspace, "SELECT 1", "query", _CountingExecutor({"data": []}))

        key = result_key("query", workspace.id, "SELECT 1")
        assert kv.ttl(key) == pytest.approx(3600, abs=5)
        assert cache_index.keys_for(workspace.id) == {key}

    def test_executor_error_stores_nothing(
        self, kv: InMemoryKeyValueStore, cache_index: CacheIndex, workspace: Workspace
    ) -> None:
        cache = QueryResultCache(kv, cache_index, ttl_seconds=3600)

        def failing() -> Dict[str, Any]:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.run_cached(workspace, "SELECT broken", "query", failing)

        assert kv.get(result_key("query", workspace.id, "SELECT broken")) is None
        assert cache_index.keys_for(workspace.id) == set()

    def test_undecodable_entry_is_a_miss(
        self, kv: InMemoryKeyValueStore, cache_index: CacheIndex, workspace: Workspace
    ) -> None:
        kv.set(result_key("query", workspace.id, "SELECT 1"), "{not json")
        cache = QueryResultCache(kv, cache_index)
        executor = _CountingExecutor({"data": []})

        _, cached = cache.run_cached(workspace, "SELECT 1", "query", executor)

        assert cached is False
        assert executor.calls == 1


class TestCacheIndex:
    def test_invalidate_removes_only_own_namespace(
        self, kv: InMemoryKeyValueStore, cache_index: CacheIndex, workspace: Workspace
    ) -> None:
        cache = QueryResultCache(kv, cache_index)
        other = Workspace(
            id="other",
            table_name="data_other",
            created_at=workspace.created_at,
            last_used_at=workspace.last_used_at,
        )
        kv.set(schema_key(workspace.id), "Table: data_abc123\n")
        kv.set(schema_key(other.id), "Table: data_other\n")
        cache.run_cached(workspace, "SELECT 1", "query", _CountingExecutor({"data": []}))
        cache.run_cached(workspace, "how many?", "natural", _CountingExecutor({"data": []}))
        cache.run_cached(other, "SELECT 1", "query", _CountingExecutor({"data": []}))

        removed = cache_index.invalidate(workspace.id)

        assert removed == 4
        assert kv.get(schema_key(workspace.id)) is None
        assert kv.get(result_key("query", workspace.id, "SELECT 1")) is None
        assert kv.get(result_key("natural", workspace.id, "how many?")) is None
        assert kv.set_members(index_key(workspace.id)) == set()
        assert kv.get(schema_key(other.id)) == "Table: data_other\n"
        assert kv.get(result_key("query", other.id, "SELECT 1")) is not None

    def test_invalidate_empty_namespace(self, cache_index: CacheIndex) -> None:
        assert cache_index.invalidate("nothing-here") == 0
