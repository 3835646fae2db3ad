"""Background reclamation of idle workspaces."""

from .service import (
    DEFAULT_IDLE_THRESHOLD,
    DEFAULT_INTERVAL_SECONDS,
    ExpirySweeper,
    SweepReport,
)

__all__ = [
    "DEFAULT_IDLE_THRESHOLD",
    "DEFAULT_INTERVAL_SECONDS",
    "ExpirySweeper",
    "SweepReport",
]
