from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, TypeVar

import mysql.connector

from ..core.exceptions import UpstreamError
from .connection import DatabaseConnection

T = TypeVar("T")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, roll back and re-raise on failure.

    Driver errors surface as UpstreamError so callers can tell transport
    failures apart from domain errors.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise UpstreamError(f"cannot connect to {conn_factory.database}: {exc}") from exc
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise UpstreamError(str(exc)) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    return ",".join(["%s"] * count)


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]
