from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import SyncErrorStatus, SyncType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewSyncError, SyncError, SyncErrorCounts
from .repository import SyncErrorRepository

_COLUMNS = "error_id, sync_type, error_code, error_message, site_id, payload, retry_count, status, created_at, updated_at"


def _to_error(r: dict) -> SyncError:
    return SyncError(
        error_id=int(r["error_id"]),
        sync_type=SyncType(r["sync_type"]),
        error_code=r["error_code"],
        error_message=r["error_message"],
        site_id=r.get("site_id"),
        retry_count=int(r.get("retry_count") or 0),
        status=SyncErrorStatus(r["status"]),
        created_at=r["created_at"],
        payload=r.get("payload"),
        updated_at=r.get("updated_at"),
    )


def _where(status, sync_type, site_id) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if status is not None:
        clauses.append("status=%s")
        params.append(status.value)
    if sync_type is not None:
        clauses.append("sync_type=%s")
        params.append(sync_type.value)
    if site_id:
        clauses.append("site_id=%s")
        params.append(site_id)
    return " AND ".join(clauses), params


class MySQLSyncErrorRepository(SyncErrorRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, error: NewSyncError) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sync_errors(sync_type, error_code, error_message, site_id, payload, retry_count, status)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                """,
                (
                    error.sync_type.value,
                    error.error_code,
                    error.error_message,
                    error.site_id,
                    error.payload,
                    SyncErrorStatus.OPEN.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, error_id: int) -> Optional[SyncError]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sync_errors WHERE error_id=%s", (int(error_id),))
            row = fetchone(cur)
            return _to_error(row) if row else None

    def list_errors(
        self,
        *,
        status: Optional[SyncErrorStatus] = None,
        sync_type: Optional[SyncType] = None,
        site_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[SyncError]:
        where, params = _where(status, sync_type, site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM sync_errors
                WHERE {where}
                ORDER BY CASE WHEN status='OPEN' THEN 0 ELSE 1 END, created_at DESC, error_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [_to_error(r) for r in fetchall(cur)]

    def count(
        self,
        *,
        status: Optional[SyncErrorStatus] = None,
        sync_type: Optional[SyncType] = None,
        site_id: Optional[str] = None,
    ) -> int:
        where, params = _where(status, sync_type, site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM sync_errors WHERE {where}", tuple(params))
            return int((fetchone(cur) or {}).get("cnt") or 0)

    def transition(
        self,
        error_id: int,
        *,
        from_status: SyncErrorStatus,
        to_status: SyncErrorStatus,
        retry_count: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sync_errors
                SET status=%s, retry_count=%s
                WHERE error_id=%s AND status=%s
                """,
                (to_status.value, int(retry_count), int(error_id), from_status.value),
            )
            return cur.rowcount > 0

    def counts_by_status(self) -> SyncErrorCounts:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS cnt FROM sync_errors GROUP BY status")
            by_status = {r["status"]: int(r["cnt"]) for r in fetchall(cur)}
        return SyncErrorCounts(
            open=by_status.get(SyncErrorStatus.OPEN.value, 0),
            resolved=by_status.get(SyncErrorStatus.RESOLVED.value, 0),
            ignored=by_status.get(SyncErrorStatus.IGNORED.value, 0),
        )
