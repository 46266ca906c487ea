from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc, to_db_datetime
from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceSession
from .repository import SessionRepository

_COLUMNS = "session_id, employee_id, event_id, check_in, check_out, status"


def _row_to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        employee_id=r["employee_id"],
        event_id=r["event_id"],
        check_in=as_utc(r["check_in"]),
        check_out=as_utc(r["check_out"]) if r.get("check_out") else None,
        status=SessionStatus(r["status"]),
    )


class MySQLSessionRepository(SessionRepository):
    """Attendance sessions in MySQL.

    The ``uq_attendance_open_session`` key rejects a second ACTIVE row per
    (employee, event), which is what makes ``create_active`` conditional.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active(self, *, employee_id: str, event_id: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE employee_id=%s AND event_id=%s AND status=%s
                LIMIT 1
                """,
                (employee_id, event_id, SessionStatus.ACTIVE.value),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def create_active(self, *, employee_id: str, event_id: str, check_in: datetime) -> Optional[AttendanceSession]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(employee_id, event_id, check_in, status)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (employee_id, event_id, to_db_datetime(check_in), SessionStatus.ACTIVE.value),
                )
                session_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError:
            return None
        return AttendanceSession(
            session_id=session_id,
            employee_id=employee_id,
            event_id=event_id,
            check_in=as_utc(to_db_datetime(check_in)),
            check_out=None,
            status=SessionStatus.ACTIVE,
        )

    def complete(self, *, session_id: int, check_out: datetime) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET check_out=%s, status=%s
                WHERE session_id=%s AND status=%s
                """,
                (
                    to_db_datetime(check_out),
                    SessionStatus.COMPLETED.value,
                    int(session_id),
                    SessionStatus.ACTIVE.value,
                ),
            )
            if cur.rowcount != 1:
                return None
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s",
                (int(session_id),),
            )
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_sessions(
        self,
        *,
        event_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceSession]:
        clauses = ["1=1"]
        params: list[object] = []

        if event_id is not None:
            clauses.append("event_id=%s")
            params.append(event_id)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(employee_id)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY check_in DESC, session_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_session(r) for r in fetchall(cur)]
