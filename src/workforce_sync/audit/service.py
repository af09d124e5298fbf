from __future__ import annotations

import logging
from typing import Any, Optional

from .model import AuditEntry
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Fire-and-forget audit sink. A failed write never fails the caller."""

    def __init__(self, logs: AuditLogRepository):
        self._logs = logs

    def record(
        self,
        action: Any,
        *,
        target_type: str,
        target_id: str,
        actor_id: Optional[str] = None,
        **details: Any,
    ) -> None:
        entry = AuditEntry(
            action=getattr(action, "value", action),
            target_type=target_type,
            target_id=str(target_id),
            actor_id=actor_id,
            details=details,
        )
        try:
            self._logs.write(entry)
        except Exception as exc:  # noqa: BLE001 - audit failures are not propagated
            logger.warning("audit write failed for %s/%s: %s", entry.action, entry.target_id, exc)
