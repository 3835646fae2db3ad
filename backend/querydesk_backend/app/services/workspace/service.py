"""Workspace service - request-level orchestration.

Every operation resolves the session first (which extends its life), then
works on the session's table through the table lifecycle (uploads) or through
the result cache (literal and natural-language queries).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import duckdb

from querydesk_backend.app.services.cache import QueryResultCache, SchemaCache
from querydesk_backend.app.services.errors import QueryExecutionError
from querydesk_backend.app.services.sessions import SessionRegistry, Workspace
from querydesk_backend.app.services.tables import TableLifecycleManager
from querydesk_backend.app.services.translation import TranslationPipeline
from querydesk_backend.app.services.warehouse import QueryRows, Warehouse

logger = logging.getLogger(__name__)


@dataclass
class SessionStatus:
    workspace: Workspace
    has_data: bool
    row_count: int


@dataclass
class UploadResult:
    session_id: str
    filename: Optional[str]
    table_name: str
    columns: List[str]
    rows: int
    skipped_rows: int


@dataclass
class QueryResult:
    session_id: str
    query: str
    columns: List[str]
    data: List[Dict[str, Any]]
    runtime_ms: float
    cached: bool

    @property
    def row_count(self) -> int:
        return len(self.data)


@dataclass
class NaturalResult:
    session_id: str
    natural_query: str
    generated_sql: str
    explanation: str
    columns: List[str]
    data: List[Dict[str, Any]]
    runtime_ms: float
    cached: bool

    @property
    def row_count(self) -> int:
        return len(self.data)


class WorkspaceService:
    """Entry point used by the API layer."""

    def __init__(
        self,
        registry: SessionRegistry,
        tables: TableLifecycleManager,
        schema_cache: SchemaCache,
        result_cache: QueryResultCache,
        translation: TranslationPipeline,
        warehouse: Warehouse,
    ) -> None:
        self.registry = registry
        self.tables = tables
        self.schema_cache = schema_cache
        self.result_cache = result_cache
        self.translation = translation
        self.warehouse = warehouse

    # ─────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────

    def create_session(self) -> Workspace:
        return self.registry.create()

    def session_status(self, session_id: str) -> SessionStatus:
        """Report a session without extending its life."""
        workspace = self.registry.get(session_id)
        has_data = self.tables.exists(workspace)
        return SessionStatus(
            workspace=workspace,
            has_data=has_data,
            row_count=self.tables.row_count(workspace) if has_data else 0,
        )

    def delete_session(self, session_id: str) -> bool:
        return self.registry.destroy(session_id)

    # ─────────────────────────────────────────────────
    # Data
    # ─────────────────────────────────────────────────

    def upload(
        self,
        session_id: str,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        filename: Optional[str] = None,
    ) -> UploadResult:
        workspace = self.registry.resolve(session_id)
        outcome = self.tables.replace(workspace, header, rows)
        # Warm the schema cache for the first natural-language question.
        self.schema_cache.describe(workspace)
        return UploadResult(
            session_id=workspace.id,
            filename=filename,
            table_name=outcome.table_name,
            columns=outcome.columns,
            rows=outcome.rows_written,
            skipped_rows=outcome.rows_skipped,
        )

    def describe(self, session_id: str) -> str:
        workspace = self.registry.resolve(session_id)
        return self.schema_cache.describe(workspace)

    def execute_sql(self, sql: str, *, generated: bool = False) -> QueryRows:
        """Run SQL against the shared warehouse.

        Raises:
            QueryExecutionError: If DuckDB rejects the statement
        """
        try:
            return self.warehouse.query(sql)
        except duckdb.Error as e:
            raise QueryExecutionError(sql, e, generated_sql=sql if generated else None) from e

    def run_query(self, session_id: str, sql: str) -> QueryResult:
        workspace = self.registry.resolve(session_id)

        def execute() -> Dict[str, Any]:
            result = self.execute_sql(sql)
            return {"columns": result.columns, "data": result.rows}

        payload, cached = self.result_cache.run_cached(workspace, sql, "query", execute)
        return QueryResult(
            session_id=workspace.id,
            query=sql,
            columns=list(payload.get("columns", [])),
            data=list(payload.get("data", [])),
            runtime_ms=float(payload.get("runtime_ms", 0.0)),
            cached=cached,
        )

    def run_natural(self, session_id: str, question: str) -> NaturalResult:
        workspace = self.registry.resolve(session_id)

        def execute() -> Dict[str, Any]:
            schema_text = self.schema_cache.describe(workspace)
            generated_sql = self.translation.translate(question, schema_text)
            result = self.execute_sql(generated_sql, generated=True)
            return {
                "generated_sql": generated_sql,
                "columns": result.columns,
                "data": result.rows,
            }

        payload, cached = self.result_cache.run_cached(workspace, question, "natural", execute)
        return NaturalResult(
            session_id=workspace.id,
            natural_query=question,
            generated_sql=str(payload.get("generated_sql", "")),
            explanation=f"Generated SQL query from natural language: '{question}'",
            columns=list(payload.get("columns", [])),
            data=list(payload.get("data", [])),
            runtime_ms=float(payload.get("runtime_ms", 0.0)),
            cached=cached,
        )
