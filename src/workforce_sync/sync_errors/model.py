from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SyncErrorStatus, SyncType


@dataclass(frozen=True)
class SyncError:
    """A persisted per-record or per-run sync failure (audit trail, never deleted)."""

    error_id: int
    sync_type: SyncType
    error_code: str
    error_message: str
    site_id: Optional[str]
    retry_count: int
    status: SyncErrorStatus
    created_at: datetime
    payload: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.error_id,
            "syncType": self.sync_type.value,
            "errorCode": self.error_code,
            "errorMessage": self.error_message,
            "siteId": self.site_id,
            "retryCount": self.retry_count,
            "status": self.status.value,
            "payload": self.payload,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class NewSyncError:
    sync_type: SyncType
    error_code: str
    error_message: str
    site_id: Optional[str] = None
    payload: Optional[str] = None


@dataclass(frozen=True)
class SyncErrorCounts:
    open: int = 0
    resolved: int = 0
    ignored: int = 0
