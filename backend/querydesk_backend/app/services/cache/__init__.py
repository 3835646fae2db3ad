"""Workspace-scoped caches: schema descriptions and query results."""

from .keys import CacheIndex, ResultKind, fingerprint, index_key, result_key, schema_key, session_key
from .result_cache import DEFAULT_RESULT_TTL_SECONDS, QueryResultCache
from .schema_cache import NO_TABLE_MESSAGE, SchemaCache, has_schema

__all__ = [
    "CacheIndex",
    "ResultKind",
    "fingerprint",
    "index_key",
    "result_key",
    "schema_key",
    "session_key",
    "DEFAULT_RESULT_TTL_SECONDS",
    "QueryResultCache",
    "NO_TABLE_MESSAGE",
    "SchemaCache",
    "has_schema",
]
