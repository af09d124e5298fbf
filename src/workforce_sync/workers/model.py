from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InternalWorker:
    """Domain entity: a worker in the platform's own directory."""

    worker_id: int
    external_worker_id: Optional[str]
    name: str
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    company_name: Optional[str] = None
    is_active: bool = True
    last_sync_pass: Optional[str] = None


@dataclass(frozen=True)
class WorkerCandidate:
    """Normalized upsert input produced from either upstream.

    None in an optional field means "upstream does not know", so the stored
    value is left untouched.
    """

    external_worker_id: str
    name: str
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    company_name: Optional[str] = None
    is_active: Optional[bool] = None


@dataclass(frozen=True)
class WorkerStats:
    total: int
    linked: int
    missing_phone: int
    deactivated: int
