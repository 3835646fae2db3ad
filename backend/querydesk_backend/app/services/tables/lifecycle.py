"""Table lifecycle - one private DuckDB table per workspace."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import duckdb

from querydesk_backend.app.services.cache.keys import CacheIndex
from querydesk_backend.app.services.errors import StoreError, UploadValidationError
from querydesk_backend.app.services.sessions.models import TABLE_PREFIX, Workspace
from querydesk_backend.app.services.warehouse import Warehouse, quote_identifier

logger = logging.getLogger(__name__)


def normalize_columns(header: Sequence[str]) -> List[str]:
    """Build table column names from an upload header.

    Names are trimmed. Empty names become ``column_{position}`` and repeated
    names (compared case-insensitively, like DuckDB identifiers) get ``_2``,
    ``_3``, ... suffixes.
    """
    columns: List[str] = []
    seen: set[str] = set()
    for position, raw in enumerate(header, start=1):
        base = (raw or "").strip() or f"column_{position}"
        name = base
        suffix = 2
        while name.lower() in seen:
            name = f"{base}_{suffix}"
            suffix += 1
        seen.add(name.lower())
        columns.append(name)
    return columns


@dataclass
class UploadOutcome:
    """Result of replacing a workspace table."""

    table_name: str
    columns: List[str]
    rows_written: int
    rows_skipped: int = 0
    failed_rows: List[int] = field(default_factory=list)


class TableLifecycleManager:
    """Creates, replaces and drops workspace tables.

    Every replace invalidates the workspace's cache namespace before it
    returns, so a caller that uploads and then queries never sees results
    computed against the previous dataset.
    """

    def __init__(self, warehouse: Warehouse, cache_index: CacheIndex) -> None:
        self.warehouse = warehouse
        self.cache_index = cache_index

    def replace(
        self,
        workspace: Workspace,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> UploadOutcome:
        """Drop the workspace table and rebuild it from uploaded rows.

        Rows whose field count differs from the header are skipped. Rows the
        store rejects are logged and skipped as well; the upload still succeeds.

        Args:
            workspace: Target workspace
            header: Header row (column names)
            rows: Data rows

        Returns:
            UploadOutcome with the number of rows actually written

        Raises:
            UploadValidationError: If the header is empty
            StoreError: If the table cannot be dropped or created
        """
        if not header:
            raise UploadValidationError("CSV file is empty")

        table_name = workspace.table_name
        columns = normalize_columns(header)

        try:
            self.warehouse.drop_table(table_name)
        except duckdb.Error as e:
            raise StoreError(
                f"Failed to drop table: {e}",
                statement=f"DROP TABLE IF EXISTS {quote_identifier(table_name)}",
            ) from e
        self.cache_index.invalidate(workspace.id)

        column_defs = ", ".join(f"{quote_identifier(c)} TEXT" for c in columns)
        create_sql = f"CREATE TABLE {quote_identifier(table_name)} ({column_defs})"
        try:
            self.warehouse.execute(create_sql)
        except duckdb.Error as e:
            raise StoreError(f"Failed to create table: {e}", statement=create_sql) from e

        placeholders = ", ".join("?" for _ in columns)
        insert_sql = f"INSERT INTO {quote_identifier(table_name)} VALUES ({placeholders})"

        written = 0
        skipped = 0
        failed: List[int] = []
        for line_no, record in enumerate(rows, start=2):
            if len(record) != len(columns):
                skipped += 1
                continue
            try:
                self.warehouse.execute(insert_sql, [value.strip() for value in record])
            except duckdb.Error as e:
                logger.warning("Skipping row %s of %s: %s", line_no, table_name, e)
                failed.append(line_no)
                continue
            written += 1

        if skipped:
            logger.info(
                "Skipped %s row(s) with a field count other than %s in %s",
                skipped,
                len(columns),
                table_name,
            )

        # Entries cached while the table was filling describe a partial dataset.
        self.cache_index.invalidate(workspace.id)

        logger.info("Replaced table %s: %s row(s), %s column(s)", table_name, written, len(columns))
        return UploadOutcome(
            table_name=table_name,
            columns=columns,
            rows_written=written,
            rows_skipped=skipped + len(failed),
            failed_rows=failed,
        )

    def drop(self, workspace: Workspace) -> None:
        """Drop the workspace table; a missing table is not an error."""
        self.drop_table(workspace.table_name)

    def drop_table(self, table_name: str) -> None:
        try:
            self.warehouse.drop_table(table_name)
        except duckdb.Error as e:
            raise StoreError(
                f"Failed to drop table: {e}",
                statement=f"DROP TABLE IF EXISTS {quote_identifier(table_name)}",
            ) from e

    def workspace_tables(self) -> List[str]:
        return self.warehouse.list_tables(TABLE_PREFIX)

    def exists(self, workspace: Workspace) -> bool:
        return self.warehouse.table_exists(workspace.table_name)

    def row_count(self, workspace: Workspace) -> int:
        if not self.exists(workspace):
            return 0
        return self.warehouse.row_count(workspace.table_name)
