"""Service wiring - one set of stores and services per process."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from querydesk_backend.app.core.clock import Clock, utc_now
from querydesk_backend.app.core.config import QueryDeskSettings, get_settings
from querydesk_backend.app.services.cache import CacheIndex, QueryResultCache, SchemaCache
from querydesk_backend.app.services.kv import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from querydesk_backend.app.services.sessions import SessionRegistry
from querydesk_backend.app.services.sweeper import ExpirySweeper
from querydesk_backend.app.services.tables import TableLifecycleManager
from querydesk_backend.app.services.translation import AnthropicTranslator, TranslationPipeline, Translator
from querydesk_backend.app.services.warehouse import Warehouse
from querydesk_backend.app.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceServices:
    """Everything a running app needs, built around injected stores."""

    settings: QueryDeskSettings
    kv: KeyValueStore
    warehouse: Warehouse
    registry: SessionRegistry
    workspace: WorkspaceService
    sweeper: ExpirySweeper

    def close(self) -> None:
        self.sweeper.stop()
        self.kv.close()
        self.warehouse.close()


def _build_kv(settings: QueryDeskSettings, clock: Clock) -> KeyValueStore:
    if settings.kv_backend == "memory":
        logger.warning("Using in-process key-value store; sessions are not shared between processes")
        return InMemoryKeyValueStore(clock=clock)
    return RedisKeyValueStore(
        settings.redis.url,
        password=settings.redis.password,
        socket_timeout=settings.redis.socket_timeout,
        socket_connect_timeout=settings.redis.socket_connect_timeout,
        key_prefix=settings.redis.key_prefix,
    )


def _build_translator(settings: QueryDeskSettings) -> Translator:
    translator_settings = settings.translator
    if not translator_settings.api_key:
        logger.warning("No translator API key configured; natural-language queries are disabled")
    return AnthropicTranslator(
        api_key=translator_settings.api_key,
        model=translator_settings.model,
        api_base=translator_settings.api_base,
        max_tokens=translator_settings.max_output_tokens,
        timeout=translator_settings.timeout_seconds,
    )


def build_services(
    settings: Optional[QueryDeskSettings] = None,
    *,
    kv: Optional[KeyValueStore] = None,
    warehouse: Optional[Warehouse] = None,
    translator: Optional[Translator] = None,
    clock: Clock = utc_now,
) -> WorkspaceServices:
    """Build the service graph; any store or the translator can be injected."""
    settings = settings or get_settings()
    session_settings = settings.sessions

    kv = kv if kv is not None else _build_kv(settings, clock)
    if warehouse is None:
        warehouse = Warehouse(settings.warehouse.path, threads=settings.warehouse.threads)
    translator = translator if translator is not None else _build_translator(settings)

    cache_index = CacheIndex(kv, ttl_seconds=session_settings.record_ttl_seconds)
    tables = TableLifecycleManager(warehouse, cache_index)
    registry = SessionRegistry(
        kv,
        tables,
        cache_index,
        ttl_seconds=session_settings.record_ttl_seconds,
        clock=clock,
    )
    workspace = WorkspaceService(
        registry=registry,
        tables=tables,
        schema_cache=SchemaCache(kv, warehouse, ttl_seconds=session_settings.record_ttl_seconds),
        result_cache=QueryResultCache(kv, cache_index, ttl_seconds=session_settings.result_ttl_seconds),
        translation=TranslationPipeline(translator),
        warehouse=warehouse,
    )
    sweeper = ExpirySweeper(
        registry,
        idle_threshold=session_settings.idle_threshold,
        interval_seconds=session_settings.sweep_interval_seconds,
        clock=clock,
    )
    return WorkspaceServices(
        settings=settings,
        kv=kv,
        warehouse=warehouse,
        registry=registry,
        workspace=workspace,
        sweeper=sweeper,
    )


@lru_cache(maxsize=1)
def get_workspace_services() -> WorkspaceServices:
    """Get singleton service graph."""
    return build_services(get_settings())


def get_workspace_service() -> WorkspaceService:
    """FastAPI dependency for the workspace facade."""
    return get_workspace_services().workspace
