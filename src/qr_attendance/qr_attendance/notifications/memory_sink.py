from __future__ import annotations

import threading
from typing import Any, Mapping


class InMemoryNotificationSink:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.messages: list[tuple[str, str]] = []

    def publish(self, employee_id: str, message: str) -> None:
        with self._lock:
            self.messages.append((employee_id, message))

    def for_employee(self, employee_id: str) -> list[str]:
        with self._lock:
            return [m for e, m in self.messages if e == employee_id]


class InMemoryAuditSink:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: list[tuple[str, str, dict]] = []

    def record(self, actor_id: str, action: str, metadata: Mapping[str, Any]) -> None:
        with self._lock:
            self.records.append((actor_id, action, dict(metadata)))
