from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..core.constants import REPLICA_ACTIVE_STATE_FLAG


@dataclass(frozen=True)
class ExternalWorkerRecord:
    """Employee row read from the external operational replica (one page's lifetime)."""

    external_worker_id: str
    name: str
    company_name: Optional[str] = None
    phone: Optional[str] = None
    national_id_prefix: Optional[str] = None
    part_code: Optional[str] = None
    trade_code: Optional[str] = None
    position_code: Optional[str] = None
    role_code: Optional[str] = None
    state_flag: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.state_flag == REPLICA_ACTIVE_STATE_FLAG

    def to_public_dict(self) -> dict:
        """Search-result view. The national ID prefix is never exposed."""
        return {
            "externalWorkerId": self.external_worker_id,
            "name": self.name,
            "companyName": self.company_name,
            "phone": self.phone,
            "tradeCode": self.trade_code,
            "positionCode": self.position_code,
            "roleCode": self.role_code,
            "stateFlag": self.state_flag,
            "isActive": self.is_active,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class ReplicaPage:
    records: Sequence[ExternalWorkerRecord]
    total: int
