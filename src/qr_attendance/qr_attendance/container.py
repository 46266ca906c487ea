from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.memory_repository import InMemorySessionRepository
from .attendance.mysql_session_repository import MySQLSessionRepository
from .attendance.repository import SessionRepository
from .attendance.service import AttendanceService
from .common.locks import KeyedLock, LockProvider
from .core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, DEFAULT_TTL_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .database.named_lock import MySQLNamedLock
from .directory.memory_directory import InMemoryEmployeeDirectory, InMemoryEventDirectory
from .directory.mysql_directory import MySQLEmployeeDirectory, MySQLEventDirectory
from .directory.repository import EmployeeDirectory, EventDirectory
from .leave.memory_repository import InMemoryLeaveRepository
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.repository import LeaveRepository
from .leave.service import LeaveService
from .notifications.dispatcher import NotificationDispatcher
from .notifications.mysql_sink import MySQLAuditSink, MySQLNotificationSink
from .notifications.sink import AuditSink, NotificationSink
from .tokens.issuer import TokenIssuer
from .tokens.memory_repository import InMemoryTokenRepository
from .tokens.mysql_token_repository import MySQLTokenRepository
from .tokens.redeemer import TokenRedeemer
from .tokens.repository import TokenRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    events: EventDirectory
    employees: EmployeeDirectory
    tokens_repo: TokenRepository
    sessions_repo: SessionRepository
    leaves_repo: LeaveRepository
    locks: LockProvider
    dispatcher: NotificationDispatcher

    token_issuer: TokenIssuer
    token_redeemer: TokenRedeemer
    attendance_service: AttendanceService
    leave_service: LeaveService


def _assemble(
    *,
    conn: Optional[DatabaseConnection],
    events: EventDirectory,
    employees: EmployeeDirectory,
    tokens_repo: TokenRepository,
    sessions_repo: SessionRepository,
    leaves_repo: LeaveRepository,
    locks: LockProvider,
    dispatcher: NotificationDispatcher,
    default_ttl_minutes: int,
) -> Container:
    attendance_service = AttendanceService(
        sessions_repo,
        locks=locks,
        dispatcher=dispatcher,
        events=events,
        employees=employees,
    )
    token_issuer = TokenIssuer(tokens_repo, events, default_ttl_minutes=default_ttl_minutes)
    token_redeemer = TokenRedeemer(tokens_repo, events, employees, attendance_service, locks=locks)
    leave_service = LeaveService(leaves_repo, employees, locks=locks, dispatcher=dispatcher)

    return Container(
        conn=conn,
        events=events,
        employees=employees,
        tokens_repo=tokens_repo,
        sessions_repo=sessions_repo,
        leaves_repo=leaves_repo,
        locks=locks,
        dispatcher=dispatcher,
        token_issuer=token_issuer,
        token_redeemer=token_redeemer,
        attendance_service=attendance_service,
        leave_service=leave_service,
    )


def build_container(
    *,
    db_config: dict,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    default_ttl_minutes: int = DEFAULT_TTL_MINUTES,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return _assemble(
        conn=conn,
        events=MySQLEventDirectory(conn),
        employees=MySQLEmployeeDirectory(conn),
        tokens_repo=MySQLTokenRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        # Named locks so several app processes share critical sections.
        locks=MySQLNamedLock(conn, timeout=lock_timeout),
        dispatcher=NotificationDispatcher(MySQLNotificationSink(conn), MySQLAuditSink(conn)),
        default_ttl_minutes=default_ttl_minutes,
    )


def build_memory_container(
    *,
    events: Optional[InMemoryEventDirectory] = None,
    employees: Optional[InMemoryEmployeeDirectory] = None,
    notifications: Optional[NotificationSink] = None,
    audit: Optional[AuditSink] = None,
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    default_ttl_minutes: int = DEFAULT_TTL_MINUTES,
) -> Container:
    """Single-process container for tests and local demos."""
    return _assemble(
        conn=None,
        events=events if events is not None else InMemoryEventDirectory(),
        employees=employees if employees is not None else InMemoryEmployeeDirectory(),
        tokens_repo=InMemoryTokenRepository(),
        sessions_repo=InMemorySessionRepository(),
        leaves_repo=InMemoryLeaveRepository(),
        locks=KeyedLock(timeout=lock_timeout),
        dispatcher=NotificationDispatcher(notifications, audit),
        default_ttl_minutes=default_ttl_minutes,
    )
