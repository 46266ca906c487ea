from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import AttendanceSession


class SessionRepository(Protocol):
    def get_active(self, *, employee_id: str, event_id: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_active(self, *, employee_id: str, event_id: str, check_in: datetime) -> Optional[AttendanceSession]:
        """Open a session. Returns None if the pair already has an active one."""

        raise NotImplementedError

    def complete(self, *, session_id: int, check_out: datetime) -> Optional[AttendanceSession]:
        """Close an active session. Returns None if it is no longer active."""

        raise NotImplementedError

    def list_sessions(
        self,
        *,
        event_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError
