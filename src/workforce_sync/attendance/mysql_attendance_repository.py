from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import from_naive_utc, to_naive_utc
from ..core.enums import AttendanceResult, AttendanceSource
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceEvent, NewAttendanceEvent
from .repository import AttendanceRepository

_COLUMNS = "event_id, site_id, user_id, external_worker_id, checkin_at, result, source, created_at"


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        site_id=r["site_id"],
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        external_worker_id=r.get("external_worker_id"),
        checkin_at=from_naive_utc(r["checkin_at"]),
        result=AttendanceResult(r["result"]),
        source=AttendanceSource(r["source"]),
        created_at=r.get("created_at"),
    )


def _site_clause(site_id: Optional[str]) -> tuple[str, list[object]]:
    if site_id:
        return " AND site_id=%s", [site_id]
    return "", []


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, event: NewAttendanceEvent) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_events(site_id, user_id, external_worker_id, checkin_at, result, source)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.site_id,
                    event.user_id,
                    event.external_worker_id,
                    to_naive_utc(event.checkin_at),
                    event.result.value,
                    event.source.value,
                ),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def list_successes(
        self, *, site_id: Optional[str], start: datetime, end: datetime, limit: int, offset: int
    ) -> Sequence[AttendanceEvent]:
        site_sql, site_params = _site_clause(site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE result=%s AND checkin_at>=%s AND checkin_at<%s{site_sql}
                ORDER BY checkin_at ASC, event_id ASC
                LIMIT %s OFFSET %s
                """,
                (
                    AttendanceResult.SUCCESS.value,
                    to_naive_utc(start),
                    to_naive_utc(end),
                    *site_params,
                    int(limit),
                    int(offset),
                ),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def count_successes(self, *, site_id: Optional[str], start: datetime, end: datetime) -> int:
        site_sql, site_params = _site_clause(site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS c
                FROM attendance_events
                WHERE result=%s AND checkin_at>=%s AND checkin_at<%s{site_sql}
                """,
                (AttendanceResult.SUCCESS.value, to_naive_utc(start), to_naive_utc(end), *site_params),
            )
            r = fetchone(cur) or {}
            return int(r.get("c") or 0)

    def count_present(self, *, site_id: Optional[str], start: datetime, end: datetime) -> int:
        site_sql, site_params = _site_clause(site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(DISTINCT user_id) AS c
                FROM attendance_events
                WHERE result=%s AND user_id IS NOT NULL AND checkin_at>=%s AND checkin_at<%s{site_sql}
                """,
                (AttendanceResult.SUCCESS.value, to_naive_utc(start), to_naive_utc(end), *site_params),
            )
            r = fetchone(cur) or {}
            return int(r.get("c") or 0)

    def has_success(self, user_id: int, *, start: datetime, end: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS hit
                FROM attendance_events
                WHERE user_id=%s AND result=%s AND checkin_at>=%s AND checkin_at<%s
                LIMIT 1
                """,
                (int(user_id), AttendanceResult.SUCCESS.value, to_naive_utc(start), to_naive_utc(end)),
            )
            return fetchone(cur) is not None

    def list_unmatched(self, *, site_id: Optional[str], limit: int, offset: int) -> Sequence[AttendanceEvent]:
        site_sql, site_params = _site_clause(site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE user_id IS NULL{site_sql}
                ORDER BY checkin_at DESC, event_id DESC
                LIMIT %s OFFSET %s
                """,
                (*site_params, int(limit), int(offset)),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def count_unmatched(self, *, site_id: Optional[str]) -> int:
        site_sql, site_params = _site_clause(site_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS c FROM attendance_events WHERE user_id IS NULL{site_sql}",
                tuple(site_params),
            )
            r = fetchone(cur) or {}
            return int(r.get("c") or 0)
