from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import SessionStatus
from .model import AttendanceSession
from .repository import SessionRepository


class InMemorySessionRepository(SessionRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_id = 1
        self._sessions: dict[int, AttendanceSession] = {}
        self._active: dict[tuple[str, str], int] = {}

    def get_active(self, *, employee_id: str, event_id: str) -> Optional[AttendanceSession]:
        with self._lock:
            session_id = self._active.get((employee_id, event_id))
            return self._sessions.get(session_id) if session_id is not None else None

    def create_active(self, *, employee_id: str, event_id: str, check_in: datetime) -> Optional[AttendanceSession]:
        with self._lock:
            key = (employee_id, event_id)
            if key in self._active:
                return None
            session = AttendanceSession(
                session_id=self._next_id,
                employee_id=employee_id,
                event_id=event_id,
                check_in=check_in,
                check_out=None,
                status=SessionStatus.ACTIVE,
            )
            self._next_id += 1
            self._sessions[session.session_id] = session
            self._active[key] = session.session_id
            return session

    def complete(self, *, session_id: int, check_out: datetime) -> Optional[AttendanceSession]:
        with self._lock:
            current = self._sessions.get(int(session_id))
            if current is None or not current.is_active:
                return None
            done = replace(current, check_out=check_out, status=SessionStatus.COMPLETED)
            self._sessions[done.session_id] = done
            self._active.pop((done.employee_id, done.event_id), None)
            return done

    def list_sessions(
        self,
        *,
        event_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceSession]:
        with self._lock:
            rows = list(self._sessions.values())
        if event_id is not None:
            rows = [s for s in rows if s.event_id == event_id]
        if employee_id is not None:
            rows = [s for s in rows if s.employee_id == employee_id]
        if status is not None:
            rows = [s for s in rows if s.status == status]
        rows.sort(key=lambda s: (s.check_in, s.session_id), reverse=True)
        return rows[: int(limit)]
