from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.service import ActivityLogService, AuditLogger
from .core.constants import DEFAULT_EARLY_LEAVE_MINUTES, DEFAULT_LATE_GRACE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .roles.mysql_role_repository import MySQLRoleRepository
from .roles.permissions import PermissionService
from .rosters.mysql_roster_repository import MySQLRosterRepository
from .rosters.mysql_slot_repository import MySQLRosterSlotRepository
from .rosters.report import ActualsReportService
from .rosters.service import RosterService
from .sandbox.service import SandboxService
from .users.mysql_identity_repository import MySQLAuthIdentityRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    attendance_service: AttendanceService
    roster_service: RosterService
    report_service: ActualsReportService
    sandbox_service: SandboxService
    audit_logger: AuditLogger
    activity_log_service: ActivityLogService


def build_services(
    *,
    users,
    identities,
    roles,
    rosters,
    slots,
    audit_logs,
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    early_leave_minutes: int = DEFAULT_EARLY_LEAVE_MINUTES,
) -> Container:
    """Wire services over any set of repositories (MySQL in production, fakes in tests)."""

    permissions = PermissionService()
    audit = AuditLogger(audit_logs, users)
    factory = AttendanceStrategyFactory(
        grace_minutes=late_grace_minutes,
        early_leave_minutes=early_leave_minutes,
    )

    return Container(
        auth_service=AuthService(users, identities),
        attendance_service=AttendanceService(rosters, slots, audit, permissions, strategy_factory=factory),
        roster_service=RosterService(rosters, slots, audit, permissions),
        report_service=ActualsReportService(rosters, slots, users, audit, permissions),
        sandbox_service=SandboxService(users, identities, roles, rosters, slots, audit_logs, audit, permissions),
        audit_logger=audit,
        activity_log_service=ActivityLogService(audit_logs, users, permissions),
    )


def build_container(
    *,
    db_config: dict,
    late_grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    early_leave_minutes: int = DEFAULT_EARLY_LEAVE_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        users=MySQLUserRepository(conn),
        identities=MySQLAuthIdentityRepository(conn),
        roles=MySQLRoleRepository(conn),
        rosters=MySQLRosterRepository(conn),
        slots=MySQLRosterSlotRepository(conn),
        audit_logs=MySQLAuditLogRepository(conn),
        late_grace_minutes=late_grace_minutes,
        early_leave_minutes=early_leave_minutes,
    )
