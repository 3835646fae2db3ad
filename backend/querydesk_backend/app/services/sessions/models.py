"""Workspace (session) record."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Dict, Optional

TABLE_PREFIX = "data_"


def table_name_for(session_id: str) -> str:
    """Derive the private table name of a workspace."""
    return f"{TABLE_PREFIX}{session_id}"


def session_id_for(table_name: str) -> Optional[str]:
    """Inverse of ``table_name_for``; None for tables no workspace owns."""
    if not table_name.startswith(TABLE_PREFIX):
        return None
    return table_name[len(TABLE_PREFIX):] or None


@dataclass
class Workspace:
    """An isolated, time-bounded workspace owning one table."""

    id: str
    table_name: str
    created_at: datetime
    last_used_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "table_name": self.table_name,
            "created_at": self.created_at.isoformat(),
            "last_used_at": self.last_used_at.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> Workspace:
        """Parse a stored record.

        Raises:
            ValueError: If the record is not a valid workspace document
        """
        try:
            data = json.loads(raw)
            created_at = datetime.fromisoformat(data["created_at"])
            last_used_at = datetime.fromisoformat(data["last_used_at"])
            workspace = cls(
                id=str(data["id"]),
                table_name=str(data["table_name"]),
                created_at=created_at,
                last_used_at=last_used_at,
            )
        except (TypeError, KeyError, json.JSONDecodeError) as e:
            raise ValueError(f"Malformed workspace record: {e}") from e

        # Handle timezone-naive datetimes
        if workspace.created_at.tzinfo is None:
            workspace.created_at = workspace.created_at.replace(tzinfo=UTC)
        if workspace.last_used_at.tzinfo is None:
            workspace.last_used_at = workspace.last_used_at.replace(tzinfo=UTC)
        return workspace
