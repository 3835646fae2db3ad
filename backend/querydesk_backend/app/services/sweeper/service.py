"""Expiry sweeper - periodic reclamation of idle workspaces.

Each sweep enumerates every workspace record and destroys the ones whose
``last_used_at`` is older than the idle threshold. A sweep is best effort:
malformed records are skipped (and left in place), and a workspace that fails
to destroy does not stop the rest of the cycle.

After the records, the sweep drops workspace tables whose record is gone
(expired in the key-value store or lost with it).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from querydesk_backend.app.core.clock import Clock, utc_now
from querydesk_backend.app.services.errors import QueryDeskError
from querydesk_backend.app.services.sessions import SessionRegistry, Workspace

logger = logging.getLogger(__name__)

# Defaults: sweep hourly, reclaim after 24 idle hours
DEFAULT_IDLE_THRESHOLD = timedelta(hours=24)
DEFAULT_INTERVAL_SECONDS = 60 * 60


@dataclass
class SweepReport:
    """Outcome of one sweep cycle."""

    scanned: int = 0
    expired: int = 0
    destroyed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    orphaned: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"SweepReport(scanned={self.scanned}, expired={self.expired}, "
            f"destroyed={len(self.destroyed)}, skipped={len(self.skipped)}, failed={len(self.failed)}, "
            f"orphaned={len(self.orphaned)})"
        )


class ExpirySweeper:
    """Destroys workspaces idle for longer than ``idle_threshold``.

    Example usage:
        sweeper = ExpirySweeper(registry, interval_seconds=3600)
        sweeper.start()        # background thread
        ...
        sweeper.stop()

        report = sweeper.run_once()   # one synchronous cycle
    """

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        self.registry = registry
        self.idle_threshold = idle_threshold
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_idle(self, workspace: Workspace) -> bool:
        return self._clock() - workspace.last_used_at > self.idle_threshold

    def run_once(self) -> SweepReport:
        """Run a single sweep cycle."""
        report = SweepReport()

        for session_id, raw in self.registry.scan():
            report.scanned += 1
            if raw is None:
                continue

            try:
                workspace = Workspace.from_json(raw)
            except ValueError as e:
                logger.warning("Skipping malformed session record %s: %s", session_id, e)
                report.skipped.append(session_id)
                continue

            if not self.is_idle(workspace):
                continue

            report.expired += 1
            try:
                self.registry.destroy(session_id)
            except QueryDeskError as e:
                logger.warning("Failed to destroy idle session %s: %s", session_id, e)
                report.failed.append(session_id)
                continue
            report.destroyed.append(session_id)

        self._reclaim_orphans(report)

        if report.expired or report.orphaned:
            logger.info("Sweep finished: %r", report)
        return report

    def _reclaim_orphans(self, report: SweepReport) -> None:
        """Drop tables left behind by records that expired or were lost."""
        for session_id in list(self.registry.orphaned_ids()):
            try:
                self.registry.destroy(session_id)
            except QueryDeskError as e:
                logger.warning("Failed to drop orphaned table of session %s: %s", session_id, e)
                report.failed.append(session_id)
                continue
            report.orphaned.append(session_id)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception:
                # Keep the thread alive; the next cycle retries.
                logger.exception("Sweep cycle aborted")

    def start(self) -> None:
        """Start the sweeper thread (no-op if already running)."""
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="expiry-sweeper", daemon=True)
        self._thread.start()
        logger.info("Expiry sweeper started (interval=%ss)", self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the sweeper thread."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
