"""Data API Router - uploads, SQL and natural-language queries."""

from __future__ import annotations

import logging
from typing import Annotated, NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from querydesk_backend.app.api.v1.data.schemas import (
    NaturalRequest,
    NaturalResponse,
    QueryRequest,
    QueryResponse,
    SchemaResponse,
    UploadResponse,
)
from querydesk_backend.app.services.container import get_workspace_service
from querydesk_backend.app.services.errors import (
    NoDatasetError,
    QueryDeskError,
    QueryExecutionError,
    StoreError,
    TranslatorNotConfiguredError,
    UploadValidationError,
    UpstreamError,
    WorkspaceNotFoundError,
)
from querydesk_backend.app.services.ingestion import decode_csv
from querydesk_backend.app.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["data"])


def _raise_http(error: QueryDeskError) -> NoReturn:
    """Map a service error onto an HTTP error with its diagnostic context."""
    if isinstance(error, WorkspaceNotFoundError):
        raise HTTPException(status_code=400, detail=f"Invalid session: {error}") from error
    if isinstance(error, (UploadValidationError, NoDatasetError)):
        raise HTTPException(status_code=400, detail=str(error)) from error
    if isinstance(error, QueryExecutionError):
        detail = {"error": str(error)}
        if error.generated_sql is not None:
            detail["generated_sql"] = error.generated_sql
        raise HTTPException(status_code=400, detail=detail) from error
    if isinstance(error, TranslatorNotConfiguredError):
        raise HTTPException(status_code=503, detail=str(error)) from error
    if isinstance(error, UpstreamError):
        raise HTTPException(
            status_code=502,
            detail={
                "error": f"Failed to generate SQL: {error}",
                "upstream_status": error.status_code,
                "upstream_body": error.body,
            },
        ) from error
    if isinstance(error, StoreError):
        detail = {"error": str(error)}
        if error.statement:
            detail["sql"] = error.statement
        raise HTTPException(status_code=500, detail=detail) from error
    raise HTTPException(status_code=500, detail=str(error)) from error


@router.post("/upload", response_model=UploadResponse)
def upload_file(
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
    file: UploadFile = File(...),
    session_id: str = Form(""),
) -> UploadResponse:
    """Replace the session table with the uploaded CSV.

    Rows whose field count differs from the header are skipped; ``rows``
    reports how many were written.
    """
    logger.info("[upload] Request received: session_id=%s, filename=%s", session_id, file.filename)
    try:
        decoded = decode_csv(file.file.read())
        result = service.upload(session_id, decoded.header, decoded.rows, filename=file.filename)
    except QueryDeskError as e:
        logger.warning("[upload] Failed for session_id=%s: %s", session_id, e)
        _raise_http(e)

    return UploadResponse(
        message="File uploaded successfully",
        filename=result.filename,
        rows=result.rows,
        skipped_rows=result.skipped_rows,
        columns=result.columns,
        table=result.table_name,
        session_id=result.session_id,
    )


@router.post("/query", response_model=QueryResponse)
def run_query(
    request: QueryRequest,
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> QueryResponse:
    """Execute SQL, serving repeated queries from the cache."""
    try:
        result = service.run_query(request.session_id, request.sql)
    except QueryDeskError as e:
        _raise_http(e)

    return QueryResponse(
        data=result.data,
        columns=result.columns,
        runtime_ms=result.runtime_ms,
        query=result.query,
        row_count=result.row_count,
        session_id=result.session_id,
        cached=result.cached,
    )


@router.post("/natural", response_model=NaturalResponse)
def run_natural(
    request: NaturalRequest,
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> NaturalResponse:
    """Translate a question to SQL and execute it, serving repeats from the cache."""
    try:
        result = service.run_natural(request.session_id, request.query)
    except QueryDeskError as e:
        logger.warning("[natural] Failed for session_id=%s: %s", request.session_id, e)
        _raise_http(e)

    return NaturalResponse(
        natural_query=result.natural_query,
        generated_sql=result.generated_sql,
        explanation=result.explanation,
        runtime_ms=result.runtime_ms,
        data=result.data,
        columns=result.columns,
        row_count=result.row_count,
        session_id=result.session_id,
        cached=result.cached,
    )


@router.get("/schema/{session_id}", response_model=SchemaResponse)
def get_schema(
    session_id: str,
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> SchemaResponse:
    """Describe the session table."""
    try:
        schema_text = service.describe(session_id)
    except QueryDeskError as e:
        _raise_http(e)

    return SchemaResponse(schema_text=schema_text, session_id=session_id)
