"""Shared DuckDB warehouse."""

from .engine import ColumnInfo, QueryRows, Warehouse, quote_identifier

__all__ = [
    "ColumnInfo",
    "QueryRows",
    "Warehouse",
    "quote_identifier",
]
