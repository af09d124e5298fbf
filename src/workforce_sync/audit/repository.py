from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditEntry, AuditLogRecord


class AuditLogRepository(Protocol):
    def write(self, entry: AuditEntry) -> None:
        raise NotImplementedError

    def recent(self, *, actions: Sequence[str], limit: int) -> Sequence[AuditLogRecord]:
        raise NotImplementedError
