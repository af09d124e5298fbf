from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.repository import AuditLogRepository
from .audit.service import AuditTrail
from .common.datetime_utils import site_timezone
from .core.constants import (
    DAY_CUTOFF_HOUR,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_SITE_TIMEZONE,
    LEGACY_ENCODING,
    REPLICA_DEFAULT_SITE_CD,
    REPLICA_QUERY_TIMEOUT_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .replica.mysql_replica_repository import MySQLReplicaRepository
from .replica.repository import ReplicaWorkerSource
from .replica.service import ReplicaSearchService
from .sync.guard import MySQLAdvisoryGuard, SyncGuard
from .sync.health import SyncHealthService
from .sync.mysql_sync_pass_repository import MySQLSyncPassRepository
from .sync.repository import SyncPassRepository
from .sync.service import ReconciliationService
from .sync_errors.mysql_sync_error_repository import MySQLSyncErrorRepository
from .sync_errors.repository import SyncErrorRepository
from .sync_errors.service import SyncErrorService
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import WorkerRepository


@dataclass(frozen=True)
class Container:
    workers_repo: WorkerRepository
    replica_repo: ReplicaWorkerSource
    passes_repo: SyncPassRepository
    sync_errors_repo: SyncErrorRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditLogRepository

    sync_guard: SyncGuard
    audit: AuditTrail
    sync_error_service: SyncErrorService
    reconciliation_service: ReconciliationService
    attendance_service: AttendanceService
    replica_search_service: ReplicaSearchService
    health_service: SyncHealthService


def assemble_container(
    *,
    workers_repo: WorkerRepository,
    replica_repo: ReplicaWorkerSource,
    passes_repo: SyncPassRepository,
    sync_errors_repo: SyncErrorRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditLogRepository,
    sync_guard: SyncGuard,
    site_tz_name: str = DEFAULT_SITE_TIMEZONE,
    cutoff_hour: int = DAY_CUTOFF_HOUR,
    legacy_encoding: str = LEGACY_ENCODING,
    page_limit: int = DEFAULT_PAGE_LIMIT,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""
    audit = AuditTrail(audit_repo)
    sync_error_service = SyncErrorService(sync_errors_repo, audit)
    reconciliation_service = ReconciliationService(
        workers_repo,
        replica_repo,
        passes_repo,
        sync_error_service,
        audit,
        default_limit=page_limit,
        legacy_encoding=legacy_encoding,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        workers_repo,
        sync_error_service,
        audit,
        site_tz=site_timezone(site_tz_name),
        cutoff_hour=cutoff_hour,
    )

    return Container(
        workers_repo=workers_repo,
        replica_repo=replica_repo,
        passes_repo=passes_repo,
        sync_errors_repo=sync_errors_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        sync_guard=sync_guard,
        audit=audit,
        sync_error_service=sync_error_service,
        reconciliation_service=reconciliation_service,
        attendance_service=attendance_service,
        replica_search_service=ReplicaSearchService(replica_repo),
        health_service=SyncHealthService(workers_repo, passes_repo, sync_error_service, audit_repo),
    )


def build_container(
    *,
    db_config: dict,
    replica_db_config: dict,
    replica_site_cd: str = REPLICA_DEFAULT_SITE_CD,
    replica_timeout: Optional[int] = REPLICA_QUERY_TIMEOUT_SECONDS,
    site_tz_name: str = DEFAULT_SITE_TIMEZONE,
    cutoff_hour: int = DAY_CUTOFF_HOUR,
    legacy_encoding: str = LEGACY_ENCODING,
    page_limit: int = DEFAULT_PAGE_LIMIT,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    replica_conn = DatabaseConnection.get_instance(
        DBConfig.from_dict(replica_db_config, connect_timeout=replica_timeout)
    )

    return assemble_container(
        workers_repo=MySQLWorkerRepository(conn),
        replica_repo=MySQLReplicaRepository(replica_conn, site_cd=str(replica_site_cd)),
        passes_repo=MySQLSyncPassRepository(conn),
        sync_errors_repo=MySQLSyncErrorRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditLogRepository(conn),
        sync_guard=MySQLAdvisoryGuard(conn),
        site_tz_name=site_tz_name,
        cutoff_hour=cutoff_hour,
        legacy_encoding=legacy_encoding,
        page_limit=page_limit,
    )
