from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from ..core.enums import AttendanceResult, AttendanceSource, IngestOutcome
from ..workers.model import InternalWorker


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one stored check-in. Immutable once created.

    ``checkin_at`` is an aware UTC datetime; ``user_id`` is None while unmatched.
    """

    event_id: int
    site_id: str
    user_id: Optional[int]
    external_worker_id: Optional[str]
    checkin_at: datetime
    result: AttendanceResult
    source: AttendanceSource
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "siteId": self.site_id,
            "userId": self.user_id,
            "externalWorkerId": self.external_worker_id,
            "checkinAt": self.checkin_at.isoformat(),
            "result": self.result.value,
            "source": self.source.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class NewAttendanceEvent:
    site_id: str
    user_id: Optional[int]
    external_worker_id: Optional[str]
    checkin_at: datetime
    result: AttendanceResult
    source: AttendanceSource

    @property
    def dedupe_key(self) -> tuple:
        return (self.external_worker_id, self.site_id, self.checkin_at)


# Resolution of an incoming event against the worker directory.


@dataclass(frozen=True)
class Resolved:
    worker: InternalWorker


@dataclass(frozen=True)
class Unmatched:
    external_worker_id: Optional[str]


@dataclass(frozen=True)
class Invalid:
    code: str
    reason: str


Resolution = Union[Resolved, Unmatched, Invalid]


@dataclass(frozen=True)
class DayWindow:
    """Half-open [start, end) attendance day, both bounds aware in site-local time."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class EventOutcome:
    index: int
    external_worker_id: Optional[str]
    result: IngestOutcome
    error_code: Optional[str] = None
    sync_error_id: Optional[int] = None

    def to_dict(self) -> dict:
        d = {"index": self.index, "externalWorkerId": self.external_worker_id, "result": self.result.value}
        if self.error_code:
            d["errorCode"] = self.error_code
            d["syncErrorId"] = self.sync_error_id
        return d


@dataclass
class IngestResult:
    results: List[EventOutcome] = field(default_factory=list)

    def _count(self, outcome: IngestOutcome) -> int:
        return sum(1 for r in self.results if r.result == outcome)

    @property
    def inserted(self) -> int:
        return self._count(IngestOutcome.INSERTED)

    @property
    def unmatched(self) -> int:
        return self._count(IngestOutcome.UNMATCHED)

    @property
    def duplicates(self) -> int:
        return self._count(IngestOutcome.DUPLICATE)

    @property
    def failed(self) -> int:
        return self._count(IngestOutcome.INVALID)

    def to_dict(self) -> dict:
        return {
            "processed": len(self.results),
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "unmatched": self.unmatched,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }
