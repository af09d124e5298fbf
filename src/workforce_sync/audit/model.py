from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditEntry:
    action: str
    target_type: str
    target_id: str
    actor_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditLogRecord:
    log_id: int
    action: str
    details: Optional[str]
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "action": self.action,
            "details": self.details,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
