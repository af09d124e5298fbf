from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SyncErrorStatus, SyncType
from .model import NewSyncError, SyncError, SyncErrorCounts


class SyncErrorRepository(Protocol):
    def create(self, error: NewSyncError) -> int:
        raise NotImplementedError

    def get(self, error_id: int) -> Optional[SyncError]:
        raise NotImplementedError

    def list_errors(
        self,
        *,
        status: Optional[SyncErrorStatus] = None,
        sync_type: Optional[SyncType] = None,
        site_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[SyncError]:
        """Newest first, OPEN rows ahead of terminal ones."""

        raise NotImplementedError

    def count(
        self,
        *,
        status: Optional[SyncErrorStatus] = None,
        sync_type: Optional[SyncType] = None,
        site_id: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def transition(
        self,
        error_id: int,
        *,
        from_status: SyncErrorStatus,
        to_status: SyncErrorStatus,
        retry_count: int,
    ) -> bool:
        """Compare-and-set on status; False when the row is no longer in ``from_status``."""

        raise NotImplementedError

    def counts_by_status(self) -> SyncErrorCounts:
        raise NotImplementedError
