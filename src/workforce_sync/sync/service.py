"""Worker directory reconciliation.

Both upstreams (terminal snapshot, replica pages) feed the same upsert keyed by
external worker id. A bad record is recorded and skipped; it never stops the
rest of its batch. Workers missing from a complete replica pass are deactivated
once, when the pass's final page lands.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Union

from ..audit.service import AuditTrail
from ..common.validators import clamp_int, optional_text
from ..core.constants import DEFAULT_PAGE_LIMIT, LEGACY_ENCODING, MAX_PAGE_LIMIT
from ..core.enums import AuditAction, SyncSource, SyncType
from ..core.exceptions import UpstreamError, ValidationError
from ..replica.model import ExternalWorkerRecord
from ..replica.repository import ReplicaWorkerSource
from ..snapshot.model import SnapshotSummary, WorkerDirectoryRecord
from ..snapshot.parser import parse_snapshot, summarize_snapshot
from ..sync_errors.service import SyncErrorService
from ..workers.model import InternalWorker, WorkerCandidate
from ..workers.national_id import decode_birth_date
from ..workers.repository import WorkerRepository
from .model import RecordError, SyncRun
from .repository import SyncPassRepository

logger = logging.getLogger(__name__)

UpstreamRecord = Union[ExternalWorkerRecord, WorkerDirectoryRecord]

TRACKED_OPTIONAL_FIELDS = ("phone", "date_of_birth", "company_name", "is_active")


class RecordInvalid(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class PageRequest:
    offset: int
    limit: int
    pass_id: Optional[str] = None


def to_candidate(record: UpstreamRecord) -> WorkerCandidate:
    """Validate one upstream record. Raises RecordInvalid."""
    external_id = optional_text(record.external_worker_id)
    if not external_id:
        raise RecordInvalid("MISSING_EXTERNAL_ID", "external worker id is empty")
    name = optional_text(record.name)
    if not name:
        raise RecordInvalid("MISSING_NAME", f"worker {external_id} has no name")

    if isinstance(record, WorkerDirectoryRecord):
        return WorkerCandidate(
            external_worker_id=external_id,
            name=name,
            company_name=optional_text(record.company_name),
        )

    date_of_birth = None
    if record.national_id_prefix:
        date_of_birth = decode_birth_date(record.national_id_prefix)
        if date_of_birth is None:
            raise RecordInvalid("INVALID_BIRTH_DATE", f"worker {external_id} has an undecodable national id")
    return WorkerCandidate(
        external_worker_id=external_id,
        name=name,
        phone=record.phone,
        date_of_birth=date_of_birth,
        company_name=record.company_name,
        is_active=record.is_active,
    )


def tracked_changes(existing: InternalWorker, candidate: WorkerCandidate) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if candidate.name != existing.name:
        changes["name"] = candidate.name
    for name in TRACKED_OPTIONAL_FIELDS:
        value = getattr(candidate, name)
        if value is not None and value != getattr(existing, name):
            changes[name] = value
    return changes


class ReconciliationService:
    """Use case: upsert/deactivate the internal worker directory from upstream records."""

    def __init__(
        self,
        workers: WorkerRepository,
        replica: ReplicaWorkerSource,
        passes: SyncPassRepository,
        errors: SyncErrorService,
        audit: Optional[AuditTrail] = None,
        *,
        default_limit: int = DEFAULT_PAGE_LIMIT,
        legacy_encoding: str = LEGACY_ENCODING,
    ):
        self._workers = workers
        self._replica = replica
        self._passes = passes
        self._errors = errors
        self._audit = audit
        self._default_limit = clamp_int(default_limit, default=DEFAULT_PAGE_LIMIT, minimum=1, maximum=MAX_PAGE_LIMIT)
        self._legacy_encoding = legacy_encoding

    def page_request(self, *, offset: Any = None, limit: Any = None, pass_id: Any = None) -> PageRequest:
        return PageRequest(
            offset=clamp_int(offset, default=0, minimum=0),
            limit=clamp_int(limit, default=self._default_limit, minimum=1, maximum=MAX_PAGE_LIMIT),
            pass_id=optional_text(pass_id),
        )

    # -- replica path -------------------------------------------------------

    def sync_replica_page(
        self,
        *,
        offset: Any = None,
        limit: Any = None,
        pass_id: Any = None,
        actor_id: Optional[str] = None,
    ) -> SyncRun:
        request = self.page_request(offset=offset, limit=limit, pass_id=pass_id)
        pass_id = self._resolve_pass(request)
        run = SyncRun(
            run_id=str(uuid.uuid4()),
            source=SyncSource.REPLICA_BATCH,
            offset=request.offset,
            limit=request.limit,
            pass_id=pass_id,
        )
        self._audit_event(
            AuditAction.SYNC_PAGE_TRIGGERED, run, actor_id, offset=run.offset, limit=run.limit, passId=pass_id
        )
        logger.info("replica page start offset=%s limit=%s pass=%s", run.offset, run.limit, pass_id)

        try:
            page = self._replica.fetch_page(offset=request.offset, limit=request.limit)
            run.fetched = len(page.records)
            run.total = int(page.total)
            self._apply(page.records, run, pass_id=pass_id)

            run.has_more = run.fetched > 0 and run.offset + run.fetched < run.total
            run.next_offset = run.offset + run.fetched if run.has_more else None
            in_sequence = self._advance_pass(pass_id, run)
            if not run.has_more:
                run.deactivated = self._finish_pass(pass_id) if in_sequence else 0
        except UpstreamError as exc:
            logger.exception("replica page failed at offset=%s", run.offset)
            self._audit_event(AuditAction.SYNC_PAGE_FAILED, run, actor_id, offset=run.offset, message=str(exc))
            raise

        logger.info(
            "replica page done offset=%s fetched=%s/%s created=%s updated=%s skipped=%s errors=%s deactivated=%s",
            run.offset,
            run.fetched,
            run.total,
            run.counts.created,
            run.counts.updated,
            run.counts.skipped,
            len(run.errors),
            run.deactivated,
        )
        self._audit_event(AuditAction.SYNC_PAGE_COMPLETED, run, actor_id, **_run_summary(run))
        return run

    def _resolve_pass(self, request: PageRequest) -> Optional[str]:
        if request.pass_id:
            known = self._passes.get_pass(request.pass_id)
            if not known:
                raise ValidationError(f"unknown passId {request.pass_id}")
            return known.pass_id
        if request.offset == 0:
            return self._passes.start_pass(SyncSource.REPLICA_BATCH)
        logger.warning("page at offset %s has no passId; deactivation will not run", request.offset)
        return None

    def _advance_pass(self, pass_id: Optional[str], run: SyncRun) -> bool:
        """Record that the page at the pass cursor landed.

        A pass may only finish after every page from offset 0 was applied in
        order against an unchanged replica total. Out-of-order, replayed and
        empty mid-pass pages are applied but leave the cursor where it is.
        """
        if not pass_id:
            return False
        if run.fetched == 0 and run.offset > 0:
            logger.warning("pass %s: empty page at offset %s, replica shrank mid-pass", pass_id, run.offset)
            return False
        advanced = self._passes.advance_pass(
            pass_id, from_offset=run.offset, to_offset=run.offset + run.fetched, total=run.total
        )
        if not advanced:
            logger.warning(
                "pass %s: page at offset %s is out of sequence or the replica total changed; "
                "the pass cannot finish",
                pass_id,
                run.offset,
            )
        return advanced

    def _finish_pass(self, pass_id: str) -> int:
        if not self._passes.complete_pass(pass_id):
            logger.warning("pass %s already finalized; deactivation skipped", pass_id)
            return 0
        deactivated = self._workers.deactivate_unseen(pass_id=pass_id)
        logger.info("pass %s complete, %s workers deactivated", pass_id, deactivated)
        return deactivated

    # -- snapshot path ------------------------------------------------------

    def sync_snapshot(self, data: bytes, *, actor_id: Optional[str] = None) -> SyncRun:
        """Reconcile a whole terminal snapshot in one pass.

        A snapshot is not an authoritative roster, so nothing is deactivated.
        SnapshotFormatError propagates before any worker is touched.
        """
        records = parse_snapshot(data, encoding=self._legacy_encoding)
        run = SyncRun(
            run_id=str(uuid.uuid4()),
            source=SyncSource.LEGACY_SNAPSHOT,
            offset=0,
            limit=len(records),
            fetched=len(records),
            total=len(records),
        )
        self._apply(records, run, pass_id=None)
        logger.info(
            "snapshot sync done records=%s created=%s updated=%s skipped=%s errors=%s",
            run.fetched,
            run.counts.created,
            run.counts.updated,
            run.counts.skipped,
            len(run.errors),
        )
        self._audit_event(AuditAction.SNAPSHOT_SYNC_COMPLETED, run, actor_id, **_run_summary(run))
        return run

    def summarize_snapshot(self, data: bytes) -> SnapshotSummary:
        return summarize_snapshot(data, encoding=self._legacy_encoding)

    # -- shared upsert ------------------------------------------------------

    def _apply(self, records: Iterable[UpstreamRecord], run: SyncRun, *, pass_id: Optional[str]) -> None:
        candidates: List[WorkerCandidate] = []
        for record in records:
            external_id = optional_text(record.external_worker_id)
            try:
                candidates.append(to_candidate(record))
            except RecordInvalid as exc:
                self._reject(run, external_id, exc)

        existing: Dict[str, InternalWorker] = dict(
            self._workers.get_by_external_ids([c.external_worker_id for c in candidates])
        )
        unchanged: List[str] = []
        for candidate in candidates:
            current = existing.get(candidate.external_worker_id)
            if current is None:
                worker_id = self._workers.create_worker(candidate, pass_id=pass_id)
                existing[candidate.external_worker_id] = InternalWorker(
                    worker_id=worker_id,
                    external_worker_id=candidate.external_worker_id,
                    name=candidate.name,
                    phone=candidate.phone,
                    date_of_birth=candidate.date_of_birth,
                    company_name=candidate.company_name,
                    is_active=candidate.is_active is not False,
                    last_sync_pass=pass_id,
                )
                run.counts.created += 1
                continue

            changes = tracked_changes(current, candidate)
            if changes:
                self._workers.update_worker(current.worker_id, changes=changes, pass_id=pass_id)
                existing[candidate.external_worker_id] = replace(current, **changes)
                run.counts.updated += 1
            else:
                unchanged.append(candidate.external_worker_id)
                run.counts.skipped += 1

        if pass_id:
            # Invalid records still exist upstream and must not be deactivated.
            invalid = [e.external_worker_id for e in run.errors if e.external_worker_id]
            self._workers.mark_seen(unchanged + invalid, pass_id=pass_id)

    def _reject(self, run: SyncRun, external_id: Optional[str], exc: RecordInvalid) -> None:
        logger.warning("skipping worker %s: %s", external_id or "?", exc.code)
        sync_error_id = self._errors.record(
            SyncType.WORKER,
            error_code=exc.code,
            error_message=exc.message,
            payload={"externalWorkerId": external_id, "source": run.source.value, "runId": run.run_id},
        )
        run.errors.append(
            RecordError(
                external_worker_id=external_id,
                error_code=exc.code,
                message=exc.message,
                sync_error_id=sync_error_id,
            )
        )
        run.counts.skipped += 1

    def _audit_event(self, action: AuditAction, run: SyncRun, actor_id: Optional[str], **details: Any) -> None:
        if self._audit:
            self._audit.record(
                action,
                target_type="WORKER_SYNC",
                target_id=run.run_id,
                actor_id=actor_id,
                source=run.source.value,
                **details,
            )


def _run_summary(run: SyncRun) -> dict:
    return {
        "offset": run.offset,
        "limit": run.limit,
        "fetched": run.fetched,
        "total": run.total,
        "created": run.counts.created,
        "updated": run.counts.updated,
        "skipped": run.counts.skipped,
        "errors": len(run.errors),
        "deactivated": run.deactivated,
        "hasMore": run.has_more,
        "nextOffset": run.next_offset,
        "passId": run.pass_id,
    }
