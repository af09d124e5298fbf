from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

import pytest
import pytz

from workforce_sync.attendance.model import AttendanceEvent, NewAttendanceEvent
from workforce_sync.audit.model import AuditEntry, AuditLogRecord
from workforce_sync.container import assemble_container
from workforce_sync.core.enums import AttendanceResult, SyncErrorStatus, SyncSource
from workforce_sync.core.exceptions import UpstreamError
from workforce_sync.replica.model import ExternalWorkerRecord, ReplicaPage
from workforce_sync.sync.guard import InProcessSyncGuard
from workforce_sync.sync.model import SyncPass
from workforce_sync.sync_errors.model import NewSyncError, SyncError, SyncErrorCounts
from workforce_sync.workers.model import InternalWorker, WorkerCandidate, WorkerStats

SEOUL = pytz.timezone("Asia/Seoul")


class InMemoryWorkers:
    def __init__(self):
        self.rows: dict[int, InternalWorker] = {}
        self._id = 0
        self.writes = 0
        self.lookups = 0

    def by_external(self, external_id: str) -> Optional[InternalWorker]:
        for w in self.rows.values():
            if w.external_worker_id == external_id:
                return w
        return None

    def add(self, **fields) -> InternalWorker:
        self._id += 1
        worker = InternalWorker(worker_id=self._id, **fields)
        self.rows[worker.worker_id] = worker
        return worker

    def get_by_ids(self, worker_ids: Sequence[int]):
        self.lookups += 1
        return {i: self.rows[i] for i in worker_ids if i in self.rows}

    def get_by_external_ids(self, external_ids: Sequence[str]):
        wanted = set(external_ids)
        return {w.external_worker_id: w for w in self.rows.values() if w.external_worker_id in wanted}

    def create_worker(self, candidate: WorkerCandidate, *, pass_id: Optional[str] = None) -> int:
        assert self.by_external(candidate.external_worker_id) is None
        self.writes += 1
        worker = self.add(
            external_worker_id=candidate.external_worker_id,
            name=candidate.name,
            phone=candidate.phone,
            date_of_birth=candidate.date_of_birth,
            company_name=candidate.company_name,
            is_active=candidate.is_active is not False,
            last_sync_pass=pass_id,
        )
        return worker.worker_id

    def update_worker(self, worker_id: int, *, changes, pass_id: Optional[str] = None) -> bool:
        self.writes += 1
        current = self.rows[worker_id]
        if pass_id is not None:
            changes = {**changes, "last_sync_pass": pass_id}
        self.rows[worker_id] = replace(current, **changes)
        return True

    def mark_seen(self, external_ids: Sequence[str], *, pass_id: str) -> int:
        touched = 0
        for wid, w in list(self.rows.items()):
            if w.external_worker_id in set(external_ids):
                self.rows[wid] = replace(w, last_sync_pass=pass_id)
                touched += 1
        return touched

    def deactivate_unseen(self, *, pass_id: str) -> int:
        count = 0
        for wid, w in list(self.rows.items()):
            if w.external_worker_id is not None and w.is_active and w.last_sync_pass != pass_id:
                self.rows[wid] = replace(w, is_active=False)
                count += 1
        return count

    def stats(self) -> WorkerStats:
        rows = list(self.rows.values())
        return WorkerStats(
            total=len(rows),
            linked=sum(1 for w in rows if w.external_worker_id is not None),
            missing_phone=sum(1 for w in rows if not w.phone),
            deactivated=sum(1 for w in rows if not w.is_active),
        )


class InMemoryReplica:
    def __init__(self, records: Sequence[ExternalWorkerRecord] = ()):
        self.records = list(records)
        self.fail_at_offset: Optional[int] = None

    def fetch_page(self, *, offset: int, limit: int) -> ReplicaPage:
        if self.fail_at_offset is not None and offset >= self.fail_at_offset:
            raise UpstreamError("replica connection lost")
        ordered = sorted(self.records, key=lambda r: r.external_worker_id or "")
        return ReplicaPage(records=ordered[offset : offset + limit], total=len(ordered))

    def search_by_name(self, name: str):
        return [r for r in self.records if name in (r.name or "")]

    def find_by_phone(self, phone: str):
        return next((r for r in self.records if r.phone == phone), None)


class InMemoryPasses:
    def __init__(self, clock=None):
        self.passes: dict[str, SyncPass] = {}
        self._clock = clock or (lambda: datetime(2024, 3, 15, 1, 0))

    def start_pass(self, source: SyncSource) -> str:
        pass_id = f"pass-{len(self.passes) + 1}"
        self.passes[pass_id] = SyncPass(pass_id=pass_id, source=source, started_at=self._clock())
        return pass_id

    def get_pass(self, pass_id: str) -> Optional[SyncPass]:
        return self.passes.get(pass_id)

    def advance_pass(self, pass_id: str, *, from_offset: int, to_offset: int, total: int) -> bool:
        current = self.passes.get(pass_id)
        if not current or current.is_completed or current.next_offset != from_offset:
            return False
        if current.replica_total is not None and current.replica_total != total:
            return False
        self.passes[pass_id] = replace(current, next_offset=to_offset, replica_total=total)
        return True

    def complete_pass(self, pass_id: str) -> bool:
        current = self.passes.get(pass_id)
        if not current or current.is_completed:
            return False
        self.passes[pass_id] = replace(current, completed_at=self._clock())
        return True

    def last_completed_at(self):
        done = [p.completed_at for p in self.passes.values() if p.completed_at]
        return max(done) if done else None


class InMemorySyncErrors:
    def __init__(self):
        self.rows: dict[int, SyncError] = {}
        self._tick = datetime(2024, 3, 15, 0, 0)

    def create(self, error: NewSyncError) -> int:
        error_id = len(self.rows) + 1
        self._tick += timedelta(seconds=1)
        self.rows[error_id] = SyncError(
            error_id=error_id,
            sync_type=error.sync_type,
            error_code=error.error_code,
            error_message=error.error_message,
            site_id=error.site_id,
            retry_count=0,
            status=SyncErrorStatus.OPEN,
            created_at=self._tick,
            payload=error.payload,
        )
        return error_id

    def get(self, error_id: int) -> Optional[SyncError]:
        return self.rows.get(error_id)

    def _filter(self, status, sync_type, site_id):
        return [
            e
            for e in self.rows.values()
            if (status is None or e.status == status)
            and (sync_type is None or e.sync_type == sync_type)
            and (not site_id or e.site_id == site_id)
        ]

    def list_errors(self, *, status=None, sync_type=None, site_id=None, limit=50, offset=0):
        items = self._filter(status, sync_type, site_id)
        items.sort(key=lambda e: e.error_id, reverse=True)
        items.sort(key=lambda e: 0 if e.status == SyncErrorStatus.OPEN else 1)
        return items[offset : offset + limit]

    def count(self, *, status=None, sync_type=None, site_id=None) -> int:
        return len(self._filter(status, sync_type, site_id))

    def transition(self, error_id: int, *, from_status, to_status, retry_count: int) -> bool:
        current = self.rows.get(error_id)
        if not current or current.status != from_status:
            return False
        self.rows[error_id] = replace(current, status=to_status, retry_count=retry_count)
        return True

    def counts_by_status(self) -> SyncErrorCounts:
        rows = list(self.rows.values())
        return SyncErrorCounts(
            open=sum(1 for e in rows if e.status == SyncErrorStatus.OPEN),
            resolved=sum(1 for e in rows if e.status == SyncErrorStatus.RESOLVED),
            ignored=sum(1 for e in rows if e.status == SyncErrorStatus.IGNORED),
        )


class InMemoryAttendance:
    def __init__(self):
        self.rows: list[AttendanceEvent] = []

    def insert(self, event: NewAttendanceEvent) -> Optional[int]:
        if event.external_worker_id is not None and any(
            (r.external_worker_id, r.site_id, r.checkin_at) == event.dedupe_key for r in self.rows
        ):
            return None
        event_id = len(self.rows) + 1
        self.rows.append(
            AttendanceEvent(
                event_id=event_id,
                site_id=event.site_id,
                user_id=event.user_id,
                external_worker_id=event.external_worker_id,
                checkin_at=event.checkin_at,
                result=event.result,
                source=event.source,
            )
        )
        return event_id

    def _successes(self, site_id, start, end):
        return [
            r
            for r in self.rows
            if r.result == AttendanceResult.SUCCESS
            and start <= r.checkin_at < end
            and (not site_id or r.site_id == site_id)
        ]

    def list_successes(self, *, site_id, start, end, limit, offset):
        items = sorted(self._successes(site_id, start, end), key=lambda r: r.checkin_at)
        return items[offset : offset + limit]

    def count_successes(self, *, site_id, start, end) -> int:
        return len(self._successes(site_id, start, end))

    def count_present(self, *, site_id, start, end) -> int:
        return len({r.user_id for r in self._successes(site_id, start, end) if r.user_id is not None})

    def has_success(self, user_id: int, *, start, end) -> bool:
        return any(r.user_id == user_id for r in self._successes(None, start, end))

    def _unmatched(self, site_id):
        return [r for r in self.rows if r.user_id is None and (not site_id or r.site_id == site_id)]

    def list_unmatched(self, *, site_id, limit, offset):
        items = sorted(self._unmatched(site_id), key=lambda r: r.checkin_at, reverse=True)
        return items[offset : offset + limit]

    def count_unmatched(self, *, site_id) -> int:
        return len(self._unmatched(site_id))


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditEntry] = []
        self.fail = False

    def write(self, entry: AuditEntry) -> None:
        if self.fail:
            raise RuntimeError("audit store down")
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]

    def recent(self, *, actions, limit):
        matching = [(i, e) for i, e in enumerate(self.entries, start=1) if e.action in set(actions)]
        matching.reverse()
        return [
            AuditLogRecord(log_id=i, action=e.action, details=str(e.details), created_at=datetime(2024, 3, 15, 1, 0))
            for i, e in matching[:limit]
        ]


def worker_record(external_id: str, name: str = None, **fields) -> ExternalWorkerRecord:
    defaults = {
        "company_name": "Hanil Construction",
        "phone": "01012345678",
        "national_id_prefix": "7104101",
        "state_flag": "W",
    }
    defaults.update(fields)
    return ExternalWorkerRecord(external_worker_id=external_id, name=name or f"Worker {external_id}", **defaults)


def build_snapshot(path, rows, *, encoding: str = "cp949") -> bytes:
    """Write a terminal-style employee table where text columns hold legacy bytes."""

    def enc(value):
        if value is None or isinstance(value, bytes):
            return value
        return value.encode(encoding)

    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE employee (empl_cd TEXT, empl_nm TEXT, part_nm TEXT, jijo_nm TEXT, gojo_nm TEXT, last_dt TEXT)"
        )
        conn.executemany(
            "INSERT INTO employee VALUES (?,?,?,?,?,?)",
            [tuple(enc(v) for v in row) for row in rows],
        )
        conn.commit()
    finally:
        conn.close()
    with open(path, "rb") as f:
        return f.read()


@pytest.fixture()
def fixed_now() -> datetime:
    # 2024-03-15 10:00 in Seoul
    return datetime(2024, 3, 15, 1, 0, tzinfo=pytz.utc)


@pytest.fixture()
def seoul():
    return SEOUL


@pytest.fixture()
def workers() -> InMemoryWorkers:
    return InMemoryWorkers()


@pytest.fixture()
def replica() -> InMemoryReplica:
    return InMemoryReplica()


@pytest.fixture()
def passes() -> InMemoryPasses:
    return InMemoryPasses()


@pytest.fixture()
def sync_errors_repo() -> InMemorySyncErrors:
    return InMemorySyncErrors()


@pytest.fixture()
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture()
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture()
def make_record():
    return worker_record


@pytest.fixture()
def make_snapshot(tmp_path):
    def _make(rows, *, encoding: str = "cp949", name: str = "terminal.db3") -> bytes:
        return build_snapshot(tmp_path / name, rows, encoding=encoding)

    return _make


@pytest.fixture()
def container(workers, replica, passes, sync_errors_repo, attendance_repo, audit_repo):
    return assemble_container(
        workers_repo=workers,
        replica_repo=replica,
        passes_repo=passes,
        sync_errors_repo=sync_errors_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        sync_guard=InProcessSyncGuard(),
        site_tz_name="Asia/Seoul",
        page_limit=100,
    )
