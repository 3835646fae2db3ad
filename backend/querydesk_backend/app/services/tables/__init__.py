"""Workspace table lifecycle."""

from .lifecycle import TableLifecycleManager, UploadOutcome, normalize_columns

__all__ = [
    "TableLifecycleManager",
    "UploadOutcome",
    "normalize_columns",
]
