from __future__ import annotations

from typing import Optional

from ..core.enums import EventStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import EmployeeInfo, EventInfo
from .repository import EmployeeDirectory, EventDirectory


class MySQLEventDirectory(EventDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT event_id, event_name, status FROM events WHERE event_id=%s",
                (event_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return EventInfo(
                event_id=r["event_id"],
                event_name=r["event_name"],
                status=EventStatus(r["status"]),
            )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_employee(self, employee_id: str) -> Optional[EmployeeInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name
                FROM employees
                WHERE employee_id=%s AND is_active=1
                """,
                (employee_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return EmployeeInfo(employee_id=r["employee_id"], full_name=r["full_name"])
