from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionStatus, ToggleKind


@dataclass(frozen=True)
class AttendanceSession:
    """One check-in/check-out span of an employee at an event.

    ``status`` is ACTIVE exactly while ``check_out`` is None.
    """

    session_id: int
    employee_id: str
    event_id: str
    check_in: datetime
    check_out: Optional[datetime]
    status: SessionStatus

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE


@dataclass(frozen=True)
class ToggleResult:
    kind: ToggleKind
    session: AttendanceSession
