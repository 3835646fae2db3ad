"""Schemas for upload and query endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Literal SQL against the session table."""

    sql: str = Field(..., description="SQL to execute")
    session_id: str = Field("", description="Session ID")


class NaturalRequest(BaseModel):
    """Natural-language question about the session table."""

    query: str = Field(..., description="Question in natural language")
    session_id: str = Field("", description="Session ID")


class UploadResponse(BaseModel):
    message: str
    filename: Optional[str] = None
    rows: int
    skipped_rows: int
    columns: List[str]
    table: str
    session_id: str


class QueryResponse(BaseModel):
    data: List[Dict[str, Any]]
    columns: List[str]
    runtime_ms: float
    query: str
    row_count: int
    session_id: str
    cached: bool


class NaturalResponse(BaseModel):
    natural_query: str
    generated_sql: str
    explanation: str
    runtime_ms: float
    data: List[Dict[str, Any]]
    columns: List[str]
    row_count: int
    session_id: str
    cached: bool


class SchemaResponse(BaseModel):
    schema_text: str = Field(..., serialization_alias="schema")
    session_id: str
