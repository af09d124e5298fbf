from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence

from ..core.constants import IN_QUERY_CHUNK_SIZE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import chunked, db_cursor, fetchall, fetchone, placeholders
from .model import InternalWorker, WorkerCandidate, WorkerStats
from .repository import WorkerRepository

_COLUMNS = "worker_id, external_worker_id, name, phone, date_of_birth, company_name, is_active, last_sync_pass"

# Columns the reconciliation engine may change.
UPDATABLE_COLUMNS = ("name", "phone", "date_of_birth", "company_name", "is_active")


def _to_worker(r: dict) -> InternalWorker:
    return InternalWorker(
        worker_id=int(r["worker_id"]),
        external_worker_id=r.get("external_worker_id"),
        name=r["name"],
        phone=r.get("phone"),
        date_of_birth=r.get("date_of_birth"),
        company_name=r.get("company_name"),
        is_active=bool(r.get("is_active", True)),
        last_sync_pass=r.get("last_sync_pass"),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_ids(self, worker_ids: Sequence[int]) -> Mapping[int, InternalWorker]:
        ids = list(dict.fromkeys(int(i) for i in worker_ids))
        found: Dict[int, InternalWorker] = {}
        if not ids:
            return found
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(ids, IN_QUERY_CHUNK_SIZE):
                cur.execute(
                    f"SELECT {_COLUMNS} FROM workers WHERE worker_id IN ({placeholders(len(chunk))})",
                    tuple(chunk),
                )
                for row in fetchall(cur):
                    worker = _to_worker(row)
                    found[worker.worker_id] = worker
        return found

    def get_by_external_ids(self, external_ids: Sequence[str]) -> Mapping[str, InternalWorker]:
        ids = list(dict.fromkeys(i for i in external_ids if i))
        found: Dict[str, InternalWorker] = {}
        if not ids:
            return found
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(ids, IN_QUERY_CHUNK_SIZE):
                cur.execute(
                    f"SELECT {_COLUMNS} FROM workers WHERE external_worker_id IN ({placeholders(len(chunk))})",
                    tuple(chunk),
                )
                for row in fetchall(cur):
                    worker = _to_worker(row)
                    found[worker.external_worker_id] = worker
        return found

    def create_worker(self, candidate: WorkerCandidate, *, pass_id: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workers(external_worker_id, name, phone, date_of_birth, company_name, is_active, last_sync_pass)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    candidate.external_worker_id,
                    candidate.name,
                    candidate.phone,
                    candidate.date_of_birth,
                    candidate.company_name,
                    0 if candidate.is_active is False else 1,
                    pass_id,
                ),
            )
            return int(cur.lastrowid)

    def update_worker(self, worker_id: int, *, changes: Mapping[str, object], pass_id: Optional[str] = None) -> bool:
        assignments = []
        params: list[object] = []
        for column, value in changes.items():
            if column not in UPDATABLE_COLUMNS:
                raise ValueError(f"column {column!r} is not updatable")
            assignments.append(f"{column}=%s")
            params.append((1 if value else 0) if column == "is_active" else value)
        if pass_id is not None:
            assignments.append("last_sync_pass=%s")
            params.append(pass_id)
        if not assignments:
            return False
        params.append(int(worker_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE workers SET {', '.join(assignments)} WHERE worker_id=%s", tuple(params))
            return cur.rowcount > 0

    def mark_seen(self, external_ids: Sequence[str], *, pass_id: str) -> int:
        ids = list(dict.fromkeys(i for i in external_ids if i))
        touched = 0
        if not ids:
            return touched
        with db_cursor(self._conn_factory) as (_, cur):
            for chunk in chunked(ids, IN_QUERY_CHUNK_SIZE):
                cur.execute(
                    f"UPDATE workers SET last_sync_pass=%s WHERE external_worker_id IN ({placeholders(len(chunk))})",
                    (pass_id, *chunk),
                )
                touched += cur.rowcount
        return touched

    def deactivate_unseen(self, *, pass_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE workers
                SET is_active=0
                WHERE external_worker_id IS NOT NULL
                  AND is_active=1
                  AND (last_sync_pass IS NULL OR last_sync_pass<>%s)
                """,
                (pass_id,),
            )
            return int(cur.rowcount)

    def stats(self) -> WorkerStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(CASE WHEN external_worker_id IS NOT NULL THEN 1 ELSE 0 END), 0) AS linked,
                    COALESCE(SUM(CASE WHEN phone IS NULL OR phone='' THEN 1 ELSE 0 END), 0) AS missing_phone,
                    COALESCE(SUM(CASE WHEN is_active=0 THEN 1 ELSE 0 END), 0) AS deactivated
                FROM workers
                """
            )
            r = fetchone(cur) or {}
            return WorkerStats(
                total=int(r.get("total") or 0),
                linked=int(r.get("linked") or 0),
                missing_phone=int(r.get("missing_phone") or 0),
                deactivated=int(r.get("deactivated") or 0),
            )
