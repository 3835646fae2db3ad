"""Shared DuckDB engine holding one table per workspace.

A single ``Warehouse`` wraps one DuckDB database. It is created once per
process (or once per test) and injected into every component that touches
tables; nothing reaches for a module-level connection.

Each operation runs on its own cursor, which is how DuckDB shares one database
between threads.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import duckdb

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier safely for DuckDB."""
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def _jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


@dataclass
class ColumnInfo:
    """A column as reported by the catalog."""

    name: str
    data_type: str


@dataclass
class QueryRows:
    """Rows returned by an arbitrary statement."""

    columns: List[str]
    rows: List[dict]


class Warehouse:
    """Handle to the shared relational store.

    Example usage:
        warehouse = Warehouse(":memory:")
        warehouse.execute('CREATE TABLE t ("a" TEXT)')
        result = warehouse.query("SELECT * FROM t")
        warehouse.close()
    """

    def __init__(self, path: str = ":memory:", *, threads: Optional[int] = None) -> None:
        config = {"threads": threads} if threads else {}
        self.path = path
        self._con = duckdb.connect(path, config=config)

    @contextmanager
    def cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        cur = self._con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> None:
        """Run a statement that returns nothing of interest (DDL, DML)."""
        with self.cursor() as cur:
            if params is None:
                cur.execute(statement)
            else:
                cur.execute(statement, list(params))

    def query(self, statement: str) -> QueryRows:
        """Run arbitrary SQL and return rows as column-name dictionaries.

        Values that are not JSON primitives (dates, decimals, ...) are
        stringified so results can be cached as JSON.
        """
        with self.cursor() as cur:
            cur.execute(statement)
            if cur.description is None:
                return QueryRows(columns=[], rows=[])
            columns = [d[0] for d in cur.description]
            fetched = cur.fetchall()
        return QueryRows(
            columns=columns,
            rows=[{columns[i]: _jsonable(row[i]) for i in range(len(columns))} for row in fetched],
        )

    def table_exists(self, table_name: str) -> bool:
        with self.cursor() as cur:
            row = cur.execute(
                """
                SELECT COUNT(*)
                FROM information_schema.tables
                WHERE table_schema = 'main' AND table_name = ?
                """,
                [table_name],
            ).fetchone()
        return bool(row and row[0])

    def list_tables(self, prefix: str = "") -> List[str]:
        """Names of tables in the main schema starting with ``prefix``."""
        with self.cursor() as cur:
            rows = cur.execute(
                """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = 'main' AND table_type = 'BASE TABLE'
                ORDER BY table_name
                """
            ).fetchall()
        return [row[0] for row in rows if row[0].startswith(prefix)]

    def table_columns(self, table_name: str) -> List[ColumnInfo]:
        """List columns in declaration order via ``PRAGMA table_info``."""
        literal = table_name.replace("'", "''")
        with self.cursor() as cur:
            rows: List[Tuple[Any, ...]] = cur.execute(f"PRAGMA table_info('{literal}')").fetchall()
        # cid, name, type, notnull, dflt_value, pk
        return [ColumnInfo(name=row[1], data_type=row[2]) for row in rows]

    def row_count(self, table_name: str) -> int:
        with self.cursor() as cur:
            row = cur.execute(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}").fetchone()
        return int(row[0]) if row else 0

    def drop_table(self, table_name: str) -> None:
        self.execute(f"DROP TABLE IF EXISTS {quote_identifier(table_name)}")

    def ping(self) -> bool:
        try:
            with self.cursor() as cur:
                cur.execute("SELECT 1").fetchone()
            return True
        except duckdb.Error:
            logger.warning("Warehouse ping failed", exc_info=True)
            return False

    def close(self) -> None:
        self._con.close()
