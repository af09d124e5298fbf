from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceEvent, NewAttendanceEvent


class AttendanceRepository(Protocol):
    """Append-only store of check-in events. Datetimes are aware UTC."""

    def insert(self, event: NewAttendanceEvent) -> Optional[int]:
        """Returns the new id, or None when (external id, site, instant) already exists."""

        raise NotImplementedError

    def list_successes(
        self, *, site_id: Optional[str], start: datetime, end: datetime, limit: int, offset: int
    ) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def count_successes(self, *, site_id: Optional[str], start: datetime, end: datetime) -> int:
        raise NotImplementedError

    def count_present(self, *, site_id: Optional[str], start: datetime, end: datetime) -> int:
        """Distinct resolved users with at least one SUCCESS in [start, end)."""

        raise NotImplementedError

    def has_success(self, user_id: int, *, start: datetime, end: datetime) -> bool:
        raise NotImplementedError

    def list_unmatched(self, *, site_id: Optional[str], limit: int, offset: int) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def count_unmatched(self, *, site_id: Optional[str]) -> int:
        raise NotImplementedError
