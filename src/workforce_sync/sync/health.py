from __future__ import annotations

from typing import Any, Dict

from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import from_naive_utc, isoformat_or_none
from ..core.constants import RECENT_SYNC_LOG_LIMIT
from ..core.enums import SYNC_LOG_ACTIONS
from ..sync_errors.service import SyncErrorService
from ..workers.repository import WorkerRepository
from .repository import SyncPassRepository


class SyncHealthService:
    """Read-only dashboard: directory stats, open failures, recent runs."""

    def __init__(
        self,
        workers: WorkerRepository,
        passes: SyncPassRepository,
        errors: SyncErrorService,
        logs: AuditLogRepository,
    ):
        self._workers = workers
        self._passes = passes
        self._errors = errors
        self._logs = logs

    def status(self) -> Dict[str, Any]:
        stats = self._workers.stats()
        counts = self._errors.counts()
        last = self._passes.last_completed_at()
        recent = self._logs.recent(actions=[a.value for a in SYNC_LOG_ACTIONS], limit=RECENT_SYNC_LOG_LIMIT)
        return {
            "lastFullSync": isoformat_or_none(from_naive_utc(last) if last else None),
            "userStats": {
                "total": stats.total,
                "linked": stats.linked,
                "missingPhone": stats.missing_phone,
                "deleted": stats.deactivated,
            },
            "errorCounts": {
                "OPEN": counts.open,
                "RESOLVED": counts.resolved,
                "IGNORED": counts.ignored,
            },
            "recentSyncLogs": [r.to_dict() for r in recent],
        }
