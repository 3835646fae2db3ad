"""Workspace service - sessions, uploads and cached queries behind one facade."""

from .service import (
    NaturalResult,
    QueryResult,
    SessionStatus,
    UploadResult,
    WorkspaceService,
)

__all__ = [
    "NaturalResult",
    "QueryResult",
    "SessionStatus",
    "UploadResult",
    "WorkspaceService",
]
