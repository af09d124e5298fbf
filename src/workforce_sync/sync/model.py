from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..core.enums import SyncSource


@dataclass(frozen=True)
class RecordError:
    """A record skipped during reconciliation; the batch carried on without it."""

    external_worker_id: Optional[str]
    error_code: str
    message: str
    sync_error_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "externalWorkerId": self.external_worker_id,
            "errorCode": self.error_code,
            "message": self.message,
            "syncErrorId": self.sync_error_id,
        }


@dataclass
class SyncCounts:
    created: int = 0
    updated: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {"created": self.created, "updated": self.updated, "skipped": self.skipped}


@dataclass
class SyncRun:
    """One page (replica) or one full pass (snapshot) of reconciliation."""

    run_id: str
    source: SyncSource
    offset: int
    limit: int
    fetched: int = 0
    total: int = 0
    has_more: bool = False
    next_offset: Optional[int] = None
    counts: SyncCounts = field(default_factory=SyncCounts)
    deactivated: int = 0
    errors: List[RecordError] = field(default_factory=list)
    pass_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.run_id,
            "source": self.source.value,
            "offset": self.offset,
            "limit": self.limit,
            "fetched": self.fetched,
            "total": self.total,
            "hasMore": self.has_more,
            "nextOffset": self.next_offset,
            "counts": self.counts.to_dict(),
            "deactivated": self.deactivated,
            "errors": [e.to_dict() for e in self.errors],
            "passId": self.pass_id,
        }


@dataclass(frozen=True)
class SyncPass:
    """A full replica pass spanning one or more pages."""

    pass_id: str
    source: SyncSource
    started_at: datetime
    completed_at: Optional[datetime] = None
    next_offset: int = 0
    replica_total: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
