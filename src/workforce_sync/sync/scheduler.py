"""Full replica pass driver for cron/scheduled jobs."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .guard import SyncGuard
from .model import SyncRun
from .service import ReconciliationService

logger = logging.getLogger(__name__)


@dataclass
class FullSyncReport:
    pass_id: Optional[str] = None
    pages: int = 0
    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    deactivated: int = 0
    runs: List[SyncRun] = field(default_factory=list)

    def add(self, run: SyncRun) -> None:
        self.pass_id = self.pass_id or run.pass_id
        self.pages += 1
        self.fetched += run.fetched
        self.created += run.counts.created
        self.updated += run.counts.updated
        self.skipped += run.counts.skipped
        self.errors += len(run.errors)
        self.deactivated += run.deactivated
        self.runs.append(run)

    def to_dict(self) -> dict:
        return {
            "passId": self.pass_id,
            "pages": self.pages,
            "fetched": self.fetched,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "deactivated": self.deactivated,
        }


def run_full_replica_sync(
    service: ReconciliationService,
    guard: SyncGuard,
    *,
    limit: Optional[int] = None,
    actor_id: Optional[str] = "scheduler",
) -> FullSyncReport:
    """Walk every replica page from offset 0 under one pass.

    Raises SyncInProgressError when another run holds the guard. An
    UpstreamError aborts the walk; the pass stays open and is never finalized.
    """
    report = FullSyncReport()
    with guard.hold():
        offset = 0
        while True:
            run = service.sync_replica_page(offset=offset, limit=limit, pass_id=report.pass_id, actor_id=actor_id)
            report.add(run)
            if not run.has_more or run.next_offset is None:
                break
            offset = run.next_offset
    logger.info(
        "full replica sync pass=%s pages=%s fetched=%s deactivated=%s",
        report.pass_id,
        report.pages,
        report.fetched,
        report.deactivated,
    )
    return report
