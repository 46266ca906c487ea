from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.locks import KeyedLock, LockProvider
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, TOGGLE_ATTEMPTS
from ..core.enums import SessionStatus, ToggleKind
from ..core.exceptions import UnavailableError
from ..directory.repository import EmployeeDirectory, EventDirectory
from ..notifications.dispatcher import NotificationDispatcher
from .model import AttendanceSession, ToggleResult
from .repository import SessionRepository

logger = logging.getLogger(__name__)


def pair_lock_key(employee_id: str, event_id: str) -> str:
    return f"session:{employee_id}:{event_id}"


class AttendanceService:
    """Check-in/check-out state machine per (employee, event).

    NoSession -> Active on the first toggle, Active -> Completed on the next,
    and a toggle after that opens a fresh session.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        *,
        locks: Optional[LockProvider] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        events: Optional[EventDirectory] = None,
        employees: Optional[EmployeeDirectory] = None,
    ):
        self._sessions = sessions
        self._locks = locks or KeyedLock()
        self._dispatcher = dispatcher or NotificationDispatcher()
        # Only used to word notifications.
        self._events = events
        self._employees = employees

    def toggle(self, employee_id: str, event_id: str, *, now: Optional[datetime] = None) -> ToggleResult:
        result = self.apply_toggle(employee_id, event_id, now=now)
        self.notify(result)
        return result

    def apply_toggle(self, employee_id: str, event_id: str, *, now: Optional[datetime] = None) -> ToggleResult:
        """State change only. Callers holding other locks send ``notify`` after releasing them."""
        now = now or now_utc()
        with self._locks.hold(pair_lock_key(employee_id, event_id)):
            result = self._toggle_locked(employee_id, event_id, now)

        logger.info(
            "%s: employee=%s event=%s session=%s",
            result.kind.value,
            employee_id,
            event_id,
            result.session.session_id,
        )
        return result

    def _toggle_locked(self, employee_id: str, event_id: str, now: datetime) -> ToggleResult:
        # The store writes are conditional; a lost race (another process
        # without the same lock provider) just re-reads.
        for _ in range(TOGGLE_ATTEMPTS):
            active = self._sessions.get_active(employee_id=employee_id, event_id=event_id)
            if active is None:
                created = self._sessions.create_active(employee_id=employee_id, event_id=event_id, check_in=now)
                if created is not None:
                    return ToggleResult(kind=ToggleKind.CHECK_IN, session=created)
            else:
                check_out = now if now >= active.check_in else active.check_in
                completed = self._sessions.complete(session_id=active.session_id, check_out=check_out)
                if completed is not None:
                    return ToggleResult(kind=ToggleKind.CHECK_OUT, session=completed)
            logger.debug("Toggle race on %s/%s, re-reading", employee_id, event_id)

        raise UnavailableError("Attendance is busy for this event, retry")

    def notify(self, result: ToggleResult) -> None:
        session = result.session
        who = session.employee_id
        where = session.event_id
        try:
            if self._employees is not None:
                employee = self._employees.get_employee(session.employee_id)
                who = employee.full_name if employee else who
            if self._events is not None:
                event = self._events.get_event(session.event_id)
                where = event.event_name if event else where
        except UnavailableError:
            logger.warning("Directory lookup failed while wording a notification")

        verb = "checked in to" if result.kind == ToggleKind.CHECK_IN else "checked out of"
        self._dispatcher.publish(session.employee_id, f"{who} {verb} {where}")

    def get_active(self, employee_id: str, event_id: str) -> Optional[AttendanceSession]:
        return self._sessions.get_active(employee_id=employee_id, event_id=event_id)

    def list_sessions(
        self,
        *,
        event_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AttendanceSession]:
        if event_id is not None:
            event_id = require_non_empty(event_id, "eventId")
        if employee_id is not None:
            employee_id = require_non_empty(employee_id, "employeeId")
        return self._sessions.list_sessions(
            event_id=event_id,
            employee_id=employee_id,
            status=status,
            limit=limit,
        )
