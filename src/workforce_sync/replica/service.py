from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..common.validators import digits_only, optional_text
from ..core.exceptions import ValidationError
from .model import ExternalWorkerRecord
from .repository import ReplicaWorkerSource


@dataclass(frozen=True)
class ReplicaSearchResult:
    name: Optional[str]
    phone: Optional[str]
    results: Sequence[ExternalWorkerRecord]


class ReplicaSearchService:
    """Use case: ad-hoc lookup against the replica for manual linking."""

    def __init__(self, replica: ReplicaWorkerSource):
        self._replica = replica

    def search(self, *, name: Optional[str] = None, phone: Optional[str] = None) -> ReplicaSearchResult:
        name = optional_text(name)
        phone = digits_only(phone)
        if not name and not phone:
            raise ValidationError("name or phone is required")

        if phone:
            found = self._replica.find_by_phone(phone)
            results: Sequence[ExternalWorkerRecord] = [found] if found else []
        else:
            results = list(self._replica.search_by_name(name))
        return ReplicaSearchResult(name=name, phone=phone, results=results)
