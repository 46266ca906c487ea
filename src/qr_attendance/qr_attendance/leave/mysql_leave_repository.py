from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..common.datetime_utils import to_db_datetime
from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = (
    "leave_id, employee_id, leave_type, start_date, end_date, reason, "
    "status, created_at, decided_by, decided_at"
)


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        employee_id=r["employee_id"],
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r.get("reason"),
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_leave(
        self,
        *,
        employee_id: str,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type, start_date, end_date, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    employee_id,
                    leave_type.value,
                    start_date,
                    end_date,
                    reason,
                    LeaveStatus.PENDING.value,
                    to_db_datetime(created_at),
                ),
            )
            return int(cur.lastrowid)

    def get_leave(self, *, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[str] = None,
        limit: Optional[int] = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(employee_id)

        where = " AND ".join(clauses)
        limit_sql = ""
        if limit is not None:
            limit_sql = "LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, leave_id DESC
                {limit_sql}
                """,
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def decide_leave(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: str,
        decided_at: datetime,
        from_statuses: Collection[LeaveStatus] = (LeaveStatus.PENDING,),
    ) -> bool:
        allowed = [s.value for s in from_statuses]
        if not allowed:
            return False
        placeholders = ",".join(["%s"] * len(allowed))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s
                WHERE leave_id=%s AND status IN ({placeholders})
                """,
                (status.value, decided_by, to_db_datetime(decided_at), int(leave_id), *allowed),
            )
            return cur.rowcount == 1
