from __future__ import annotations

import json
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, placeholders
from .model import AuditEntry, AuditLogRecord
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def write(self, entry: AuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(action, actor_id, target_type, target_id, details)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    entry.action,
                    entry.actor_id,
                    entry.target_type,
                    entry.target_id,
                    json.dumps(entry.details, ensure_ascii=False, default=str),
                ),
            )

    def recent(self, *, actions: Sequence[str], limit: int) -> Sequence[AuditLogRecord]:
        if not actions:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT log_id, action, details, created_at
                FROM audit_logs
                WHERE action IN ({placeholders(len(actions))})
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s
                """,
                (*actions, int(limit)),
            )
            return [
                AuditLogRecord(
                    log_id=int(r["log_id"]),
                    action=r["action"],
                    details=r.get("details"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
