"""Session registry - workspace records with a sliding TTL.

Each caller works inside a workspace identified by an opaque random id. The
record lives in the key-value store under ``session:{id}`` and expires after
``ttl_seconds`` of inactivity: every successful ``resolve`` rewrites it with a
fresh TTL and refreshes ``last_used_at``.

Destroying a workspace removes the record, every cache entry namespaced to it
and its table.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Tuple

from querydesk_backend.app.core.clock import Clock, utc_now
from querydesk_backend.app.services.cache.keys import (
    SESSION_PREFIX,
    CacheIndex,
    session_key,
)
from querydesk_backend.app.services.errors import (
    WorkspaceCreationError,
    WorkspaceNotFoundError,
)
from querydesk_backend.app.services.kv import KeyValueStore
from querydesk_backend.app.services.sessions.models import (
    Workspace,
    session_id_for,
    table_name_for,
)

if TYPE_CHECKING:
    from querydesk_backend.app.services.tables import TableLifecycleManager

logger = logging.getLogger(__name__)

# Default TTL for workspaces (24 hours)
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def generate_session_id() -> str:
    """Return 32 hex characters from the OS random source."""
    return secrets.token_hex(16)


class SessionRegistry:
    """Creates, resolves and destroys workspaces.

    Example usage:
        registry = SessionRegistry(kv, tables, cache_index)

        workspace = registry.create()
        workspace = registry.resolve(workspace.id)   # touches the record
        registry.destroy(workspace.id)
    """

    def __init__(
        self,
        kv: KeyValueStore,
        tables: TableLifecycleManager,
        cache_index: CacheIndex,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        self.kv = kv
        self.tables = tables
        self.cache_index = cache_index
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._id_factory = id_factory

    def create(self) -> Workspace:
        """Create and persist a new workspace.

        Raises:
            WorkspaceCreationError: If no random id could be generated
        """
        try:
            session_id = self._id_factory()
        except (OSError, NotImplementedError) as e:
            raise WorkspaceCreationError(f"random source unavailable: {e}") from e

        now = self._clock()
        workspace = Workspace(
            id=session_id,
            table_name=table_name_for(session_id),
            created_at=now,
            last_used_at=now,
        )
        self.kv.set(session_key(session_id), workspace.to_json(), ttl_seconds=self.ttl_seconds)
        logger.info("Created session %s", session_id)
        return workspace

    def _load(self, session_id: str) -> Workspace:
        if not session_id:
            raise WorkspaceNotFoundError(session_id)
        raw = self.kv.get(session_key(session_id))
        if raw is None:
            raise WorkspaceNotFoundError(session_id)
        try:
            return Workspace.from_json(raw)
        except ValueError:
            logger.warning("Session %s has a malformed record", session_id, exc_info=True)
            raise WorkspaceNotFoundError(session_id)

    def get(self, session_id: str) -> Workspace:
        """Look up a workspace without touching it.

        Raises:
            WorkspaceNotFoundError: If the id is empty, unknown or expired
        """
        return self._load(session_id)

    def resolve(self, session_id: str) -> Workspace:
        """Look up a workspace and extend its life.

        ``last_used_at`` never moves backwards, even if the clock does.

        Raises:
            WorkspaceNotFoundError: If the id is empty, unknown or expired
        """
        workspace = self._load(session_id)
        now = self._clock()
        if now > workspace.last_used_at:
            workspace.last_used_at = now
        self.kv.set(session_key(session_id), workspace.to_json(), ttl_seconds=self.ttl_seconds)
        self.cache_index.refresh(session_id)
        return workspace

    def destroy(self, session_id: str) -> bool:
        """Remove a workspace with its caches and table.

        Safe to call for ids that no longer exist.

        Returns:
            True if a session record existed
        """
        if not session_id:
            return False

        # Record last: a failed drop must leave it for the next sweep.
        self.tables.drop_table(table_name_for(session_id))
        self.cache_index.invalidate(session_id)
        existed = self.kv.delete(session_key(session_id)) > 0

        if existed:
            logger.info("Destroyed session %s", session_id)
        return existed

    def orphaned_ids(self) -> Iterator[str]:
        """Yield ids whose table is still in the warehouse but whose record is gone."""
        for table_name in self.tables.workspace_tables():
            session_id = session_id_for(table_name)
            if session_id and self.kv.get(session_key(session_id)) is None:
                yield session_id

    def scan(self) -> Iterator[Tuple[str, Optional[str]]]:
        """Yield ``(session_id, raw_record)`` for every stored workspace.

        The record is None if the key expired between listing and reading.
        """
        for key in self.kv.scan(f"{SESSION_PREFIX}*"):
            session_id = key[len(SESSION_PREFIX):]
            yield session_id, self.kv.get(key)
