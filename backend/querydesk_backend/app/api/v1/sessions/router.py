"""Session API Router - workspace lifecycle."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from querydesk_backend.app.api.v1.sessions.schemas import (
    MessageResponse,
    SessionResponse,
    SessionStatusResponse,
)
from querydesk_backend.app.services.container import get_workspace_service
from querydesk_backend.app.services.errors import (
    StoreError,
    WorkspaceCreationError,
    WorkspaceNotFoundError,
)
from querydesk_backend.app.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])


@router.post("/create", response_model=SessionResponse)
def create_session(
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> SessionResponse:
    """Create an empty workspace."""
    try:
        workspace = service.create_session()
    except (WorkspaceCreationError, StoreError) as e:
        logger.error("[create_session] %s", e)
        raise HTTPException(status_code=500, detail="Failed to create session") from e
    return SessionResponse(session_id=workspace.id, message="Session created successfully")


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
def session_status(
    session_id: str,
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> SessionStatusResponse:
    """Return the session record without extending its life."""
    try:
        status = service.session_status(session_id)
    except WorkspaceNotFoundError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e
    except StoreError as e:
        raise HTTPException(status_code=500, detail="Failed to get session") from e

    workspace = status.workspace
    return SessionStatusResponse(
        id=workspace.id,
        table_name=workspace.table_name,
        created_at=workspace.created_at,
        last_used=workspace.last_used_at,
        has_data=status.has_data,
        row_count=status.row_count,
    )


@router.delete("/{session_id}", response_model=MessageResponse)
def delete_session(
    session_id: str,
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> MessageResponse:
    """Delete a session with its table and cached results."""
    try:
        existed = service.delete_session(session_id)
    except StoreError as e:
        logger.error("[delete_session] %s", e)
        raise HTTPException(status_code=500, detail="Failed to delete session") from e
    if not existed:
        raise HTTPException(status_code=404, detail="Session not found")
    return MessageResponse(message="Session deleted successfully")
