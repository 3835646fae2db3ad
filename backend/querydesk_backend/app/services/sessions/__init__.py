"""Session registry - per-caller workspaces with sliding expiry.

Each workspace owns exactly one table in the shared warehouse and a
namespace of cache entries. Workspaces expire after a period of inactivity
and are reclaimed by the expiry sweeper.
"""

from .models import TABLE_PREFIX, Workspace, session_id_for, table_name_for
from .registry import DEFAULT_TTL_SECONDS, SessionRegistry, generate_session_id

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "TABLE_PREFIX",
    "SessionRegistry",
    "Workspace",
    "generate_session_id",
    "session_id_for",
    "table_name_for",
]
