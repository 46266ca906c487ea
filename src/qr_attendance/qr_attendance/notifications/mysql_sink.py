from __future__ import annotations

import json
from typing import Any, Mapping

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor


class MySQLNotificationSink:
    """Stores notifications for the delivery app to pick up."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def publish(self, employee_id: str, message: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO notifications(employee_id, message) VALUES(%s,%s)",
                (employee_id, message[:512]),
            )


class MySQLAuditSink:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, actor_id: str, action: str, metadata: Mapping[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO audit_logs(actor_id, action, metadata) VALUES(%s,%s,%s)",
                (actor_id, action, json.dumps(dict(metadata), default=str)),
            )
