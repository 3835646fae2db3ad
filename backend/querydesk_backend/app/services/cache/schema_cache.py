"""Schema cache - memoized table descriptions for prompts and the schema endpoint."""

from __future__ import annotations

import logging

from querydesk_backend.app.services.cache.keys import schema_key
from querydesk_backend.app.services.kv import KeyValueStore
from querydesk_backend.app.services.sessions.models import Workspace
from querydesk_backend.app.services.warehouse import Warehouse

logger = logging.getLogger(__name__)

NO_TABLE_MESSAGE = "No table found. Please upload a CSV file first."


def has_schema(text: str) -> bool:
    """Return False for the no-table sentinel."""
    return text != NO_TABLE_MESSAGE


def format_schema(table_name: str, columns: list) -> str:
    lines = [f"Table: {table_name}", "Columns:"]
    lines.extend(f"  - {column.name} ({column.data_type})" for column in columns)
    return "\n".join(lines) + "\n"


class SchemaCache:
    """Describes a workspace table, caching the text for the workspace TTL."""

    def __init__(self, kv: KeyValueStore, warehouse: Warehouse, ttl_seconds: int) -> None:
        self.kv = kv
        self.warehouse = warehouse
        self.ttl_seconds = ttl_seconds

    def describe(self, workspace: Workspace) -> str:
        """Return the table description, or ``NO_TABLE_MESSAGE`` if there is no table.

        The sentinel is never cached.
        """
        key = schema_key(workspace.id)
        cached = self.kv.get(key)
        if cached is not None:
            logger.debug("Schema cache hit for session %s", workspace.id)
            return cached

        if not self.warehouse.table_exists(workspace.table_name):
            return NO_TABLE_MESSAGE

        text = format_schema(workspace.table_name, self.warehouse.table_columns(workspace.table_name))
        self.kv.set(key, text, ttl_seconds=self.ttl_seconds)
        logger.debug("Schema cached for session %s", workspace.id)
        return text
