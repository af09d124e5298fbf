from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class WorkerDirectoryRecord:
    """One employee row decoded from a terminal snapshot."""

    external_worker_id: str
    name: str
    company_name: Optional[str] = None
    position: Optional[str] = None
    trade: Optional[str] = None
    last_seen: Optional[str] = None


@dataclass(frozen=True)
class SnapshotSummary:
    total: int
    companies: Tuple[str, ...] = field(default_factory=tuple)
    last_seen: Optional[str] = None

    def to_dict(self) -> dict:
        return {"total": self.total, "companies": list(self.companies), "lastSeen": self.last_seen}
