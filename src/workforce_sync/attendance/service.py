from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

import pytz

from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc, parse_instant
from ..common.validators import clamp_int, optional_text
from ..core.constants import DAY_CUTOFF_HOUR, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ..core.enums import AttendanceResult, AttendanceSource, AuditAction, IngestOutcome, SyncType
from ..core.exceptions import ValidationError
from ..sync_errors.service import SyncErrorService
from ..workers.model import InternalWorker
from ..workers.repository import WorkerRepository
from .day_window import day_window
from .model import (
    AttendanceEvent,
    DayWindow,
    EventOutcome,
    IngestResult,
    Invalid,
    NewAttendanceEvent,
    Resolution,
    Resolved,
    Unmatched,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventPage:
    items: Sequence[AttendanceEvent]
    total: int
    page: int
    limit: int

    def to_dict(self) -> dict:
        return {
            "items": [e.to_dict() for e in self.items],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": (self.total + self.limit - 1) // self.limit if self.limit else 0,
            },
        }


@dataclass(frozen=True)
class TodayAttendance:
    window: DayWindow
    present_count: int
    events: EventPage

    def to_dict(self) -> dict:
        d = self.events.to_dict()
        d["window"] = self.window.to_dict()
        d["presentCount"] = self.present_count
        return d


@dataclass(frozen=True)
class _ParsedEvent:
    index: int
    site_id: str
    external_worker_id: Optional[str]
    user_id: Optional[int]
    checkin_at: datetime
    result: AttendanceResult
    source: AttendanceSource


class _EventInvalid(Exception):
    def __init__(self, code: str, reason: str, *, site_id: Optional[str] = None):
        super().__init__(reason)
        self.code = code
        self.reason = reason
        self.site_id = site_id


def _enum_field(enum_cls, raw: Mapping[str, Any], key: str, default, site_id: Optional[str]):
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise _EventInvalid(f"INVALID_{key.upper()}", f"{key} {value!r} is not recognized", site_id=site_id)


class AttendanceService:
    """Use case: ingest check-in batches and answer day-window questions."""

    def __init__(
        self,
        events: AttendanceRepository,
        workers: WorkerRepository,
        errors: SyncErrorService,
        audit: AuditTrail | None = None,
        *,
        site_tz=None,
        cutoff_hour: int = DAY_CUTOFF_HOUR,
    ):
        self._events = events
        self._workers = workers
        self._errors = errors
        self._audit = audit
        self._tz = site_tz or pytz.utc
        self._cutoff_hour = int(cutoff_hour)

    # -- ingestion ----------------------------------------------------------

    def _parse(self, index: int, raw: Any) -> _ParsedEvent:
        if not isinstance(raw, Mapping):
            raise _EventInvalid("MALFORMED_EVENT", "event must be an object")

        site_id = optional_text(raw.get("siteId"))
        if not site_id:
            raise _EventInvalid("MISSING_SITE_ID", "siteId is required")

        checkin_raw = raw.get("checkinAt")
        if checkin_raw is None or str(checkin_raw).strip() == "":
            raise _EventInvalid("MISSING_CHECKIN_AT", "checkinAt is required", site_id=site_id)
        try:
            checkin_at = parse_instant(checkin_raw, self._tz)
        except ValueError:
            raise _EventInvalid("INVALID_CHECKIN_AT", "checkinAt is not an ISO-8601 timestamp", site_id=site_id)

        user_id = None
        if raw.get("userId") not in (None, ""):
            try:
                user_id = int(raw["userId"])
            except (TypeError, ValueError):
                raise _EventInvalid("INVALID_USER_ID", "userId must be an integer", site_id=site_id)

        external_id = optional_text(raw.get("externalWorkerId"))
        if external_id is None and user_id is None:
            raise _EventInvalid("MISSING_WORKER_REFERENCE", "externalWorkerId or userId is required", site_id=site_id)

        return _ParsedEvent(
            index=index,
            site_id=site_id,
            external_worker_id=external_id,
            user_id=user_id,
            checkin_at=checkin_at,
            result=_enum_field(AttendanceResult, raw, "result", AttendanceResult.SUCCESS, site_id),
            source=_enum_field(AttendanceSource, raw, "source", AttendanceSource.DEVICE, site_id),
        )

    def resolve(
        self,
        event: _ParsedEvent,
        known: Mapping[str, InternalWorker],
        known_ids: Mapping[int, InternalWorker],
    ) -> Resolution:
        if event.user_id is not None:
            worker = known_ids.get(event.user_id)
            if not worker:
                return Invalid("UNKNOWN_USER_ID", f"user {event.user_id} does not exist")
            if event.external_worker_id and worker.external_worker_id not in (None, event.external_worker_id):
                return Invalid("WORKER_ID_MISMATCH", "userId and externalWorkerId refer to different workers")
            return Resolved(worker)
        worker = known.get(event.external_worker_id)
        if worker:
            return Resolved(worker)
        return Unmatched(event.external_worker_id)

    def ingest_batch(self, events: Any, *, actor_id: Optional[str] = None) -> IngestResult:
        """Validate, resolve and store each event independently.

        Unmatched events are stored with no user; invalid ones are reported and
        recorded in the sync failure ledger. Neither stops the batch.
        """
        if not isinstance(events, list):
            raise ValidationError("events must be an array")

        result = IngestResult()
        parsed: List[_ParsedEvent] = []
        for index, raw in enumerate(events):
            try:
                parsed.append(self._parse(index, raw))
            except _EventInvalid as exc:
                external_id = optional_text(raw.get("externalWorkerId")) if isinstance(raw, Mapping) else None
                self._reject(result, index, external_id, exc.code, exc.reason, site_id=exc.site_id)

        known = self._workers.get_by_external_ids(
            [p.external_worker_id for p in parsed if p.external_worker_id and p.user_id is None]
        )
        known_ids = self._workers.get_by_ids([p.user_id for p in parsed if p.user_id is not None])
        seen: set = set()
        for event in parsed:
            resolution = self.resolve(event, known, known_ids)
            if isinstance(resolution, Invalid):
                self._reject(
                    result,
                    event.index,
                    event.external_worker_id,
                    resolution.code,
                    resolution.reason,
                    site_id=event.site_id,
                )
                continue

            user_id = resolution.worker.worker_id if isinstance(resolution, Resolved) else None
            external_id = event.external_worker_id
            if isinstance(resolution, Resolved) and external_id is None:
                external_id = resolution.worker.external_worker_id

            new_event = NewAttendanceEvent(
                site_id=event.site_id,
                user_id=user_id,
                external_worker_id=external_id,
                checkin_at=event.checkin_at,
                result=event.result,
                source=event.source,
            )
            if external_id is not None and new_event.dedupe_key in seen:
                outcome = IngestOutcome.DUPLICATE
            elif self._events.insert(new_event) is None:
                outcome = IngestOutcome.DUPLICATE
            else:
                outcome = IngestOutcome.INSERTED if user_id is not None else IngestOutcome.UNMATCHED
            seen.add(new_event.dedupe_key)
            result.results.append(EventOutcome(index=event.index, external_worker_id=external_id, result=outcome))

        result.results.sort(key=lambda r: r.index)

        logger.info(
            "attendance batch processed=%s inserted=%s unmatched=%s duplicates=%s failed=%s",
            len(result.results),
            result.inserted,
            result.unmatched,
            result.duplicates,
            result.failed,
        )
        if self._audit:
            self._audit.record(
                AuditAction.ATTENDANCE_SYNCED,
                target_type="ATTENDANCE_BATCH",
                target_id=str(len(events)),
                actor_id=actor_id,
                processed=len(result.results),
                inserted=result.inserted,
                unmatched=result.unmatched,
                duplicates=result.duplicates,
                failed=result.failed,
            )
        return result

    def _reject(
        self,
        result: IngestResult,
        index: int,
        external_id: Optional[str],
        code: str,
        reason: str,
        *,
        site_id: Optional[str],
    ) -> None:
        logger.warning("attendance event #%s rejected: %s", index, code)
        error_id = self._errors.record(
            SyncType.ATTENDANCE,
            error_code=code,
            error_message=reason,
            site_id=site_id,
            payload={"index": index, "externalWorkerId": external_id},
        )
        result.results.append(
            EventOutcome(
                index=index,
                external_worker_id=external_id,
                result=IngestOutcome.INVALID,
                error_code=code,
                sync_error_id=error_id,
            )
        )

    # -- day window ---------------------------------------------------------

    def current_window(self, now: datetime | None = None) -> DayWindow:
        return day_window(now or now_utc(), self._tz, self._cutoff_hour)

    def today_attendance(
        self,
        *,
        site_id: Optional[str] = None,
        page: Any = 1,
        limit: Any = DEFAULT_LIST_LIMIT,
        now: datetime | None = None,
    ) -> TodayAttendance:
        window = self.current_window(now)
        site_id = optional_text(site_id)
        page_n = clamp_int(page, default=1, minimum=1)
        limit_n = clamp_int(limit, default=DEFAULT_LIST_LIMIT, minimum=1, maximum=MAX_LIST_LIMIT)

        items = self._events.list_successes(
            site_id=site_id, start=window.start, end=window.end, limit=limit_n, offset=(page_n - 1) * limit_n
        )
        total = self._events.count_successes(site_id=site_id, start=window.start, end=window.end)
        present = self._events.count_present(site_id=site_id, start=window.start, end=window.end)
        return TodayAttendance(
            window=window,
            present_count=present,
            events=EventPage(items=items, total=total, page=page_n, limit=limit_n),
        )

    def is_present(self, user_id: int, *, now: datetime | None = None) -> bool:
        window = self.current_window(now)
        return self._events.has_success(int(user_id), start=window.start, end=window.end)

    # -- unmatched surface --------------------------------------------------

    def list_unmatched(
        self, *, site_id: Optional[str] = None, page: Any = 1, limit: Any = DEFAULT_LIST_LIMIT
    ) -> EventPage:
        site_id = optional_text(site_id)
        page_n = clamp_int(page, default=1, minimum=1)
        limit_n = clamp_int(limit, default=DEFAULT_LIST_LIMIT, minimum=1, maximum=MAX_LIST_LIMIT)
        items = self._events.list_unmatched(site_id=site_id, limit=limit_n, offset=(page_n - 1) * limit_n)
        total = self._events.count_unmatched(site_id=site_id)
        return EventPage(items=items, total=total, page=page_n, limit=limit_n)
