from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from .model import InternalWorker, WorkerCandidate, WorkerStats


class WorkerRepository(Protocol):
    """Repository interface for the internal worker directory.

    The reconciliation engine writes through it; attendance ingestion only reads.
    """

    def get_by_ids(self, worker_ids: Sequence[int]) -> Mapping[int, InternalWorker]:
        raise NotImplementedError

    def get_by_external_ids(self, external_ids: Sequence[str]) -> Mapping[str, InternalWorker]:
        raise NotImplementedError

    def create_worker(self, candidate: WorkerCandidate, *, pass_id: Optional[str] = None) -> int:
        raise NotImplementedError

    def update_worker(self, worker_id: int, *, changes: Mapping[str, object], pass_id: Optional[str] = None) -> bool:
        raise NotImplementedError

    def mark_seen(self, external_ids: Sequence[str], *, pass_id: str) -> int:
        raise NotImplementedError

    def deactivate_unseen(self, *, pass_id: str) -> int:
        """Deactivate linked, active workers not stamped with ``pass_id``."""

        raise NotImplementedError

    def stats(self) -> WorkerStats:
        raise NotImplementedError
