from __future__ import annotations

from typing import Optional, Sequence

from ..common.validators import digits_only, optional_text
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ExternalWorkerRecord, ReplicaPage
from .repository import ReplicaWorkerSource

EMPLOYEE_SELECT = """
    e.empl_cd, e.empl_nm, e.part_cd, e.tel_no, e.social_no,
    e.state_flag, e.update_dt, e.gojo_cd, e.jijo_cd, e.role_cd,
    p.part_nm
"""

EMPLOYEE_FROM = """
    FROM employee e
    LEFT JOIN partner p ON e.site_cd = p.site_cd AND e.part_cd = p.part_cd
"""


def map_employee_row(r: dict) -> ExternalWorkerRecord:
    return ExternalWorkerRecord(
        external_worker_id=optional_text(r.get("empl_cd")) or "",
        name=optional_text(r.get("empl_nm")) or "",
        company_name=optional_text(r.get("part_nm")),
        phone=digits_only(optional_text(r.get("tel_no"))),
        national_id_prefix=optional_text(r.get("social_no")),
        part_code=optional_text(r.get("part_cd")),
        trade_code=optional_text(r.get("gojo_cd")),
        position_code=optional_text(r.get("jijo_cd")),
        role_code=optional_text(r.get("role_cd")),
        state_flag=optional_text(r.get("state_flag")),
        updated_at=r.get("update_dt"),
    )


def like_contains(term: str) -> str:
    """Substring pattern for `LIKE ... ESCAPE '!'` with the term's wildcards taken literally."""
    escaped = term.replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"%{escaped}%"


class MySQLReplicaRepository(ReplicaWorkerSource):
    """Employee reads against the external MariaDB replica, scoped to one site code."""

    def __init__(self, conn_factory: DatabaseConnection, *, site_cd: str):
        self._conn_factory = conn_factory
        self._site_cd = site_cd

    def fetch_page(self, *, offset: int, limit: int) -> ReplicaPage:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt {EMPLOYEE_FROM} WHERE e.site_cd=%s", (self._site_cd,))
            total = int((fetchone(cur) or {}).get("cnt") or 0)
            cur.execute(
                f"""
                SELECT {EMPLOYEE_SELECT} {EMPLOYEE_FROM}
                WHERE e.site_cd=%s
                ORDER BY e.empl_cd ASC
                LIMIT %s OFFSET %s
                """,
                (self._site_cd, int(limit), int(offset)),
            )
            records = [map_employee_row(r) for r in fetchall(cur)]
        return ReplicaPage(records=records, total=total)

    def search_by_name(self, name: str) -> Sequence[ExternalWorkerRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EMPLOYEE_SELECT} {EMPLOYEE_FROM}
                WHERE e.site_cd=%s AND e.empl_nm LIKE %s ESCAPE '!'
                ORDER BY e.empl_nm ASC
                """,
                (self._site_cd, like_contains(name)),
            )
            return [map_employee_row(r) for r in fetchall(cur)]

    def find_by_phone(self, phone: str) -> Optional[ExternalWorkerRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EMPLOYEE_SELECT} {EMPLOYEE_FROM}
                WHERE e.site_cd=%s AND REPLACE(e.tel_no, '-', '')=%s
                LIMIT 1
                """,
                (self._site_cd, phone),
            )
            row = fetchone(cur)
            return map_employee_row(row) if row else None
