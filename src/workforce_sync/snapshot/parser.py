"""Legacy access-control snapshot reader.

On-site terminals export their employee table as a single SQLite file whose
TEXT columns actually hold legacy Korean bytes (CP949/EUC-KR), not the UTF-8
the container format promises. Every column is therefore selected as BLOB and
decoded explicitly; when the legacy codec rejects the bytes, the value is read
as plain text instead.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from typing import Callable, List, Optional, Sequence

from ..core.constants import LEGACY_ENCODING
from ..core.exceptions import SnapshotFormatError
from .model import SnapshotSummary, WorkerDirectoryRecord

logger = logging.getLogger(__name__)

EMPLOYEE_COLUMNS = ("empl_cd", "empl_nm", "part_nm", "jijo_nm", "gojo_nm", "last_dt")

_EMPLOYEE_QUERY = "SELECT {} FROM employee".format(
    ", ".join(f"CAST({col} AS BLOB)" for col in EMPLOYEE_COLUMNS)
)

Decoder = Callable[[bytes], str]


def _legacy_decoder(encoding: str) -> Decoder:
    def decode(raw: bytes) -> str:
        return raw.decode(encoding)

    return decode


def _text_decoder(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


class ColumnDecoder:
    """Primary legacy decode with a plain-text fallback, applied per column."""

    def __init__(self, encoding: str = LEGACY_ENCODING):
        self._primary = _legacy_decoder(encoding)
        self._fallback: Decoder = _text_decoder
        self.fallbacks = 0

    def decode(self, value, column: str = "") -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            try:
                text = self._primary(raw)
            except UnicodeDecodeError:
                self.fallbacks += 1
                logger.warning("legacy decode failed for column %s, reading as text", column or "?")
                text = self._fallback(raw)
        else:
            text = str(value)
        text = text.strip()
        return text or None


def _open(data: bytes) -> sqlite3.Connection:
    if not data:
        raise SnapshotFormatError("snapshot is empty")
    conn = sqlite3.connect(":memory:")
    try:
        conn.deserialize(bytes(data))
        # deserialize() accepts anything; the header is only checked on first read.
        conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.DatabaseError as exc:
        conn.close()
        raise SnapshotFormatError(f"not a valid snapshot database: {exc}") from exc
    return conn


def _query(conn: sqlite3.Connection, sql: str) -> Sequence[tuple]:
    try:
        return conn.execute(sql).fetchall()
    except sqlite3.DatabaseError as exc:
        raise SnapshotFormatError(f"snapshot query failed: {exc}") from exc


def parse_snapshot(data: bytes, *, encoding: str = LEGACY_ENCODING) -> List[WorkerDirectoryRecord]:
    """Decode every employee row of a snapshot.

    Rows without an employee code or a name are terminal placeholders and are
    dropped without being reported. Raises SnapshotFormatError when the bytes are
    not a readable store; no partial list is ever returned.
    """
    decoder = ColumnDecoder(encoding)
    records: List[WorkerDirectoryRecord] = []
    with closing(_open(data)) as conn:
        for row in _query(conn, _EMPLOYEE_QUERY):
            values = {col: decoder.decode(raw, col) for col, raw in zip(EMPLOYEE_COLUMNS, row)}
            if not values["empl_cd"] or not values["empl_nm"]:
                continue
            records.append(
                WorkerDirectoryRecord(
                    external_worker_id=values["empl_cd"],
                    name=values["empl_nm"],
                    company_name=values["part_nm"],
                    position=values["jijo_nm"],
                    trade=values["gojo_nm"],
                    last_seen=values["last_dt"],
                )
            )
    if decoder.fallbacks:
        logger.info("snapshot parsed with %d text fallbacks", decoder.fallbacks)
    return records


def summarize_snapshot(data: bytes, *, encoding: str = LEGACY_ENCODING) -> SnapshotSummary:
    decoder = ColumnDecoder(encoding)
    with closing(_open(data)) as conn:
        total = _query(conn, "SELECT COUNT(*) FROM employee")[0][0] or 0
        company_rows = _query(
            conn, "SELECT DISTINCT CAST(part_nm AS BLOB) FROM employee WHERE part_nm IS NOT NULL"
        )
        last_rows = _query(conn, "SELECT MAX(CAST(last_dt AS BLOB)) FROM employee")

    companies = {decoder.decode(row[0], "part_nm") for row in company_rows}
    companies.discard(None)
    last_seen = decoder.decode(last_rows[0][0], "last_dt") if last_rows else None
    return SnapshotSummary(total=int(total), companies=tuple(sorted(companies)), last_seen=last_seen)
