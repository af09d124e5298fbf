from __future__ import annotations

from enum import Enum


class SyncSource(str, Enum):
    """Upstream feeding the worker directory."""

    LEGACY_SNAPSHOT = "legacy-snapshot"
    REPLICA_BATCH = "replica-batch"


class SyncType(str, Enum):
    ATTENDANCE = "attendance"
    WORKER = "worker"


class SyncErrorStatus(str, Enum):
    """Lifecycle of a persisted sync failure. RESOLVED and IGNORED are terminal."""

    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    IGNORED = "IGNORED"


class AttendanceResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


class AttendanceSource(str, Enum):
    DEVICE = "DEVICE"
    MANUAL = "MANUAL"


class IngestOutcome(str, Enum):
    """Per-event outcome reported back to the batch submitter."""

    INSERTED = "INSERTED"
    UNMATCHED = "UNMATCHED"
    DUPLICATE = "DUPLICATE"
    INVALID = "INVALID"


class RetryDirective(str, Enum):
    INCREMENT = "increment"
    RESET = "reset"
    KEEP = "keep"


class AuditAction(str, Enum):
    SYNC_PAGE_TRIGGERED = "SYNC_PAGE_TRIGGERED"
    SYNC_PAGE_COMPLETED = "SYNC_PAGE_COMPLETED"
    SYNC_PAGE_FAILED = "SYNC_PAGE_FAILED"
    SNAPSHOT_SYNC_COMPLETED = "SNAPSHOT_SYNC_COMPLETED"
    ATTENDANCE_SYNCED = "ATTENDANCE_SYNCED"
    SYNC_ERROR_UPDATED = "SYNC_ERROR_UPDATED"


SYNC_LOG_ACTIONS = (
    AuditAction.SYNC_PAGE_COMPLETED,
    AuditAction.SYNC_PAGE_FAILED,
    AuditAction.SNAPSHOT_SYNC_COMPLETED,
)
