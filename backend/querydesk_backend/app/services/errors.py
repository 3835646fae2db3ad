"""Workspace and query service errors."""

from __future__ import annotations

from typing import Optional


class QueryDeskError(Exception):
    """Base error for workspace, cache and query operations."""

    pass


class WorkspaceNotFoundError(QueryDeskError):
    """Workspace (session) is unknown or expired."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        if session_id:
            super().__init__(f"Session '{session_id}' not found")
        else:
            super().__init__("Session ID is required")


class WorkspaceCreationError(QueryDeskError):
    """A new workspace could not be created."""

    def __init__(self, message: str):
        super().__init__(f"Failed to create session: {message}")


class UploadValidationError(QueryDeskError):
    """Uploaded dataset is unusable."""

    def __init__(self, message: str):
        super().__init__(f"Validation error: {message}")


class StoreError(QueryDeskError):
    """Relational or key-value store operation failed."""

    def __init__(self, message: str, statement: Optional[str] = None):
        self.statement = statement
        super().__init__(message)


class NoDatasetError(QueryDeskError):
    """Workspace has no table to answer questions about."""

    def __init__(self, message: str):
        super().__init__(message)


class TranslatorNotConfiguredError(QueryDeskError):
    """No credentials for the translation service."""

    def __init__(self) -> None:
        super().__init__("AI service not configured")


class UpstreamError(QueryDeskError):
    """Translation service unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class MalformedReplyError(UpstreamError):
    """Translation service replied with something other than the expected object."""

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(f"Failed to parse AI response: {message}", body=body)


class QueryExecutionError(QueryDeskError):
    """SQL was rejected or failed inside the relational store."""

    def __init__(self, query: str, original_error: Exception, generated_sql: Optional[str] = None):
        self.query = query
        self.original_error = original_error
        self.generated_sql = generated_sql
        prefix = "Failed to execute generated SQL" if generated_sql else "Failed to execute query"
        super().__init__(f"{prefix}: {original_error}")
