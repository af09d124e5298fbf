from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ExternalWorkerRecord, ReplicaPage


class ReplicaWorkerSource(Protocol):
    """Read-only view of the external replica's employee table."""

    def fetch_page(self, *, offset: int, limit: int) -> ReplicaPage:
        raise NotImplementedError

    def search_by_name(self, name: str) -> Sequence[ExternalWorkerRecord]:
        raise NotImplementedError

    def find_by_phone(self, phone: str) -> Optional[ExternalWorkerRecord]:
        raise NotImplementedError
