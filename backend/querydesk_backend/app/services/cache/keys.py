"""Cache key layout and the per-workspace cache index.

Key namespace:
    session:{id}                       workspace record
    schema:{id}                        schema description
    cache:{kind}:{id}:{fingerprint}    memoized query / natural-language result
    cache-index:{id}                   set of result keys written for the workspace

Invalidation reads ``cache-index:{id}`` instead of scanning the keyspace, so it
costs O(entries for that workspace).
"""

from __future__ import annotations

import hashlib
import logging
from typing import Literal

from querydesk_backend.app.services.kv import KeyValueStore

logger = logging.getLogger(__name__)

ResultKind = Literal["query", "natural"]

SESSION_PREFIX = "session:"


def fingerprint(text: str) -> str:
    """SHA-256 hex digest of ``text``; whitespace and case sensitive."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def session_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


def schema_key(session_id: str) -> str:
    return f"schema:{session_id}"


def index_key(session_id: str) -> str:
    return f"cache-index:{session_id}"


def result_key(kind: ResultKind, session_id: str, text: str) -> str:
    return f"cache:{kind}:{session_id}:{fingerprint(text)}"


class CacheIndex:
    """Tracks and invalidates every cache entry namespaced to a workspace."""

    def __init__(self, kv: KeyValueStore, ttl_seconds: int) -> None:
        self.kv = kv
        self.ttl_seconds = ttl_seconds

    def register(self, session_id: str, key: str) -> None:
        """Record that ``key`` belongs to ``session_id``."""
        self.kv.add_to_set(index_key(session_id), key, ttl_seconds=self.ttl_seconds)

    def keys_for(self, session_id: str) -> set[str]:
        return self.kv.set_members(index_key(session_id))

    def refresh(self, session_id: str) -> None:
        """Extend the schema entry and the index together with the workspace."""
        self.kv.expire(schema_key(session_id), self.ttl_seconds)
        self.kv.expire(index_key(session_id), self.ttl_seconds)

    def invalidate(self, session_id: str) -> int:
        """Delete the schema entry, all result entries and the index itself.

        Returns:
            Number of keys that existed
        """
        keys = self.keys_for(session_id)
        removed = self.kv.delete(schema_key(session_id), index_key(session_id), *sorted(keys))
        logger.debug("Invalidated %s cache key(s) for session %s", removed, session_id)
        return removed
