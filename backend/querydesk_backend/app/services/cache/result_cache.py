"""Query result cache - memoized results per workspace and input text."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Tuple

from querydesk_backend.app.services.cache.keys import CacheIndex, ResultKind, result_key
from querydesk_backend.app.services.kv import KeyValueStore
from querydesk_backend.app.services.sessions.models import Workspace

logger = logging.getLogger(__name__)

# Default TTL for result entries (1 hour)
DEFAULT_RESULT_TTL_SECONDS = 60 * 60

Payload = Dict[str, Any]


class QueryResultCache:
    """Memoizes executor results under ``cache:{kind}:{id}:{fingerprint}``.

    A hit returns the stored payload without calling the executor. Two
    concurrent misses on the same key both execute and the last write wins.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        cache_index: CacheIndex,
        ttl_seconds: int = DEFAULT_RESULT_TTL_SECONDS,
    ) -> None:
        self.kv = kv
        self.cache_index = cache_index
        self.ttl_seconds = ttl_seconds

    def lookup(self, workspace: Workspace, input_text: str, kind: ResultKind) -> Payload | None:
        """Return the stored payload, or None on a miss."""
        raw = self.kv.get(result_key(kind, workspace.id, input_text))
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable %s cache entry for session %s", kind, workspace.id)
            return None
        return payload if isinstance(payload, dict) else None

    def run_cached(
        self,
        workspace: Workspace,
        input_text: str,
        kind: ResultKind,
        executor: Callable[[], Payload],
    ) -> Tuple[Payload, bool]:
        """Return a cached payload or compute and store a fresh one.

        On a miss the executor's wall-clock duration is recorded in the payload
        as ``runtime_ms``. Executor errors propagate and nothing is stored.

        Returns:
            (payload, cached) where ``cached`` is True on a hit
        """
        cached = self.lookup(workspace, input_text, kind)
        if cached is not None:
            logger.debug("Cache hit: %s for session %s", kind, workspace.id)
            return cached, True

        logger.debug("Cache miss: %s for session %s", kind, workspace.id)
        started = time.perf_counter()
        payload = executor()
        payload["runtime_ms"] = round((time.perf_counter() - started) * 1000, 3)

        key = result_key(kind, workspace.id, input_text)
        self.kv.set(key, json.dumps(payload, default=str), ttl_seconds=self.ttl_seconds)
        self.cache_index.register(workspace.id, key)
        return payload, False
