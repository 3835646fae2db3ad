"""Schemas for session endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SessionResponse(BaseModel):
    """Response for a newly created session."""

    session_id: str
    message: str


class SessionStatusResponse(BaseModel):
    """Stored session record plus data status."""

    id: str
    table_name: str
    created_at: datetime
    last_used: datetime
    has_data: bool
    row_count: int


class MessageResponse(BaseModel):
    message: str
