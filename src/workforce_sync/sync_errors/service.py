from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from ..audit.service import AuditTrail
from ..common.validators import clamp_int, optional_text
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ..core.enums import AuditAction, RetryDirective, SyncErrorStatus, SyncType
from ..core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from .model import NewSyncError, SyncError, SyncErrorCounts
from .repository import SyncErrorRepository

logger = logging.getLogger(__name__)

# RESOLVED and IGNORED have no outgoing edges: reopening is not supported.
ALLOWED_TRANSITIONS: Mapping[SyncErrorStatus, frozenset] = {
    SyncErrorStatus.OPEN: frozenset({SyncErrorStatus.RESOLVED, SyncErrorStatus.IGNORED}),
    SyncErrorStatus.RESOLVED: frozenset(),
    SyncErrorStatus.IGNORED: frozenset(),
}


def _parse_enum(enum_cls, value: Any, field_name: str):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip())
    except ValueError:
        try:
            return enum_cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in enum_cls)
            raise ValidationError(f"{field_name} must be one of: {allowed}")


@dataclass(frozen=True)
class SyncErrorPage:
    items: Sequence[SyncError]
    total: int
    page: int
    limit: int

    def to_dict(self) -> dict:
        return {
            "items": [e.to_dict() for e in self.items],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": (self.total + self.limit - 1) // self.limit if self.limit else 0,
            },
        }


class SyncErrorService:
    """Use case: the sync failure ledger (record, list, resolve/ignore)."""

    def __init__(self, errors: SyncErrorRepository, audit: Optional[AuditTrail] = None):
        self._errors = errors
        self._audit = audit

    def record(
        self,
        sync_type: SyncType,
        *,
        error_code: str,
        error_message: str,
        site_id: Optional[str] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> int:
        error_id = self._errors.create(
            NewSyncError(
                sync_type=sync_type,
                error_code=error_code,
                error_message=error_message,
                site_id=site_id,
                payload=json.dumps(payload, ensure_ascii=False, default=str) if payload else None,
            )
        )
        logger.warning("sync error #%s recorded: %s %s", error_id, sync_type.value, error_code)
        return error_id

    def list_errors(
        self,
        *,
        status: Any = None,
        sync_type: Any = None,
        site_id: Optional[str] = None,
        page: Any = 1,
        limit: Any = DEFAULT_LIST_LIMIT,
    ) -> SyncErrorPage:
        status_e = _parse_enum(SyncErrorStatus, status, "status")
        type_e = _parse_enum(SyncType, sync_type, "syncType")
        site_id = optional_text(site_id)
        page_n = clamp_int(page, default=1, minimum=1)
        limit_n = clamp_int(limit, default=DEFAULT_LIST_LIMIT, minimum=1, maximum=MAX_LIST_LIMIT)

        items = self._errors.list_errors(
            status=status_e,
            sync_type=type_e,
            site_id=site_id,
            limit=limit_n,
            offset=(page_n - 1) * limit_n,
        )
        total = self._errors.count(status=status_e, sync_type=type_e, site_id=site_id)
        return SyncErrorPage(items=items, total=total, page=page_n, limit=limit_n)

    def update_status(
        self,
        error_id: Any,
        status: Any,
        *,
        retry: Any = RetryDirective.KEEP,
        actor_id: Optional[str] = None,
    ) -> SyncError:
        if error_id is None or str(error_id).strip() == "":
            raise ValidationError("id is required")
        try:
            error_id = int(error_id)
        except (TypeError, ValueError):
            raise ValidationError("id must be an integer")

        target = _parse_enum(SyncErrorStatus, status, "status")
        if target is None:
            raise ValidationError("status is required")
        directive = _parse_enum(RetryDirective, retry, "retry") or RetryDirective.KEEP

        current = self._errors.get(error_id)
        if not current:
            raise NotFoundError(f"sync error {error_id} not found")
        if target not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"cannot move sync error {error_id} from {current.status.value} to {target.value}"
            )

        if directive == RetryDirective.INCREMENT:
            retry_count = current.retry_count + 1
        elif directive == RetryDirective.RESET:
            retry_count = 0
        else:
            retry_count = current.retry_count

        if not self._errors.transition(
            error_id, from_status=current.status, to_status=target, retry_count=retry_count
        ):
            raise InvalidTransitionError(f"sync error {error_id} was changed concurrently")

        if self._audit:
            self._audit.record(
                AuditAction.SYNC_ERROR_UPDATED,
                target_type="SYNC_ERROR",
                target_id=str(error_id),
                actor_id=actor_id,
                fromStatus=current.status.value,
                toStatus=target.value,
                retryCount=retry_count,
            )

        updated = self._errors.get(error_id)
        if not updated:
            raise NotFoundError(f"sync error {error_id} not found")
        return updated

    def counts(self) -> SyncErrorCounts:
        return self._errors.counts_by_status()
