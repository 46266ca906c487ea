from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import EventStatus


@dataclass(frozen=True)
class EventInfo:
    """Read-model of an event owned by the event management app."""

    event_id: str
    event_name: str
    status: EventStatus

    @property
    def is_active(self) -> bool:
        return self.status == EventStatus.ACTIVE


@dataclass(frozen=True)
class EmployeeInfo:
    employee_id: str
    full_name: str
