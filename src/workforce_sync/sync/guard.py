"""Single-flight guards for full syncs.

The scheduler (or the HTTP trigger) holds a guard for the duration of a run;
the reconciliation service itself never takes one.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol

import mysql.connector

from ..core.constants import SYNC_LOCK_NAME
from ..core.exceptions import SyncInProgressError, UpstreamError
from ..database.connection import DatabaseConnection

logger = logging.getLogger(__name__)


class SyncGuard(Protocol):
    def hold(self) -> ContextManager[None]:
        """Enter the critical section or raise SyncInProgressError immediately."""

        raise NotImplementedError


class InProcessSyncGuard:
    """Rejects overlapping runs inside one process."""

    def __init__(self):
        self._lock = threading.Lock()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise SyncInProgressError("a sync is already running")
        try:
            yield
        finally:
            self._lock.release()


class MySQLAdvisoryGuard:
    """Rejects overlapping runs across processes with a named MySQL lock.

    GET_LOCK is bound to the session, so the connection stays open while held.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, name: str = SYNC_LOCK_NAME):
        self._conn_factory = conn_factory
        self._name = name

    @contextmanager
    def hold(self) -> Iterator[None]:
        try:
            conn = self._conn_factory.connect()
        except mysql.connector.Error as exc:
            raise UpstreamError(f"cannot take sync lock: {exc}") from exc
        try:
            cur = conn.cursor()
            cur.execute("SELECT GET_LOCK(%s, 0)", (self._name,))
            row = cur.fetchone()
            if not row or row[0] != 1:
                raise SyncInProgressError(f"sync lock {self._name!r} is held elsewhere")
            logger.debug("acquired sync lock %s", self._name)
            try:
                yield
            finally:
                cur.execute("SELECT RELEASE_LOCK(%s)", (self._name,))
                cur.fetchone()
                cur.close()
        finally:
            conn.close()
