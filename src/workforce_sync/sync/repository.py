from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import SyncSource
from .model import SyncPass


class SyncPassRepository(Protocol):
    def start_pass(self, source: SyncSource) -> str:
        raise NotImplementedError

    def get_pass(self, pass_id: str) -> Optional[SyncPass]:
        raise NotImplementedError

    def advance_pass(self, pass_id: str, *, from_offset: int, to_offset: int, total: int) -> bool:
        """Move the pass cursor from ``from_offset`` to ``to_offset``.

        Compare-and-set: fails when the pass is completed, the cursor is elsewhere,
        or the replica total differs from the one recorded by the first page.
        """

        raise NotImplementedError

    def complete_pass(self, pass_id: str) -> bool:
        """Finalize once. Returns False when the pass was already completed or is unknown."""

        raise NotImplementedError

    def last_completed_at(self) -> Optional[datetime]:
        raise NotImplementedError
