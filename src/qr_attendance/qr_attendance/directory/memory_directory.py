from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import EventStatus
from .model import EmployeeInfo, EventInfo


class InMemoryEventDirectory:
    def __init__(self, events: Iterable[EventInfo] = ()):
        self._events = {e.event_id: e for e in events}

    def add(self, event_id: str, event_name: str, status: EventStatus = EventStatus.ACTIVE) -> EventInfo:
        event = EventInfo(event_id=event_id, event_name=event_name, status=status)
        self._events[event_id] = event
        return event

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        return self._events.get(event_id)


class InMemoryEmployeeDirectory:
    def __init__(self, employees: Iterable[EmployeeInfo] = ()):
        self._employees = {e.employee_id: e for e in employees}

    def add(self, employee_id: str, full_name: str) -> EmployeeInfo:
        employee = EmployeeInfo(employee_id=employee_id, full_name=full_name)
        self._employees[employee_id] = employee
        return employee

    def get_employee(self, employee_id: str) -> Optional[EmployeeInfo]:
        return self._employees.get(employee_id)
