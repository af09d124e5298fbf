from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_utc, to_naive_utc
from ..core.enums import SyncSource
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SyncPass
from .repository import SyncPassRepository


class MySQLSyncPassRepository(SyncPassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def start_pass(self, source: SyncSource) -> str:
        pass_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO sync_passes(pass_id, source, started_at) VALUES(%s,%s,%s)",
                (pass_id, source.value, to_naive_utc(now_utc())),
            )
        return pass_id

    def get_pass(self, pass_id: str) -> Optional[SyncPass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT pass_id, source, started_at, completed_at, next_offset, replica_total
                FROM sync_passes WHERE pass_id=%s
                """,
                (pass_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SyncPass(
                pass_id=r["pass_id"],
                source=SyncSource(r["source"]),
                started_at=r["started_at"],
                completed_at=r.get("completed_at"),
                next_offset=int(r.get("next_offset") or 0),
                replica_total=r.get("replica_total"),
            )

    def advance_pass(self, pass_id: str, *, from_offset: int, to_offset: int, total: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sync_passes
                SET next_offset=%s, replica_total=%s
                WHERE pass_id=%s
                  AND completed_at IS NULL
                  AND next_offset=%s
                  AND (replica_total IS NULL OR replica_total=%s)
                """,
                (int(to_offset), int(total), pass_id, int(from_offset), int(total)),
            )
            if cur.rowcount > 0:
                return True
            # rowcount only counts changed rows; an empty page at the cursor changes nothing.
            if from_offset != to_offset:
                return False
            cur.execute(
                """
                SELECT 1 AS ok FROM sync_passes
                WHERE pass_id=%s AND completed_at IS NULL AND next_offset=%s AND replica_total=%s
                """,
                (pass_id, int(from_offset), int(total)),
            )
            return fetchone(cur) is not None

    def complete_pass(self, pass_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sync_passes SET completed_at=%s WHERE pass_id=%s AND completed_at IS NULL",
                (to_naive_utc(now_utc()), pass_id),
            )
            return cur.rowcount > 0

    def last_completed_at(self) -> Optional[datetime]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(completed_at) AS last_completed FROM sync_passes")
            return (fetchone(cur) or {}).get("last_completed")
