from __future__ import annotations

from typing import Optional, Protocol

from .model import EmployeeInfo, EventInfo


class EventDirectory(Protocol):
    """Point lookup of events. Deleted events are returned with status DELETED."""

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        raise NotImplementedError


class EmployeeDirectory(Protocol):
    def get_employee(self, employee_id: str) -> Optional[EmployeeInfo]:
        raise NotImplementedError
