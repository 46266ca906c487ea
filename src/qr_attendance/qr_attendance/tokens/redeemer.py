from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from ..attendance.model import AttendanceSession
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_utc
from ..common.locks import KeyedLock, LockProvider
from ..common.retry import run_with_retry
from ..core.constants import CAS_ATTEMPTS
from ..core.enums import ToggleKind
from ..core.exceptions import (
    EventUnavailableError,
    ExpiredError,
    InactiveError,
    NotFoundError,
    UnavailableError,
)
from ..directory.model import EmployeeInfo, EventInfo
from ..directory.repository import EmployeeDirectory, EventDirectory
from .model import ScanToken
from .payload import decode_payload
from .repository import TokenRepository

logger = logging.getLogger(__name__)


def token_lock_key(token_value: str) -> str:
    return f"token:{token_value}"


@dataclass(frozen=True)
class Redemption:
    kind: ToggleKind
    session: AttendanceSession
    token: ScanToken
    event: EventInfo
    employee: EmployeeInfo


class TokenRedeemer:
    """Validates a scanned payload and turns it into a check-in or check-out.

    Checks run in a fixed order and the first failure wins:
    parse, payload expiry, token lookup (stored expiry re-checked), active
    flag, owning event, employee. Nothing is written unless all pass.
    """

    def __init__(
        self,
        tokens: TokenRepository,
        events: EventDirectory,
        employees: EmployeeDirectory,
        attendance: AttendanceService,
        *,
        locks: Optional[LockProvider] = None,
    ):
        self._tokens = tokens
        self._events = events
        self._employees = employees
        self._attendance = attendance
        self._locks = locks or KeyedLock()

    def redeem(
        self,
        payload: Union[str, bytes, Mapping[str, Any]],
        employee_id: str,
        *,
        now: Optional[datetime] = None,
    ) -> Redemption:
        now = now or now_utc()
        parsed = decode_payload(payload)

        if now > parsed.expires_at:
            raise ExpiredError("QR code has expired")

        with self._locks.hold(token_lock_key(parsed.token)):
            reserved, event, employee = self._reserve(parsed.token, employee_id, now)
            try:
                toggle = self._attendance.apply_toggle(employee_id, reserved.event_id, now=now)
            except Exception:
                self._release(reserved.token)
                raise

        logger.info(
            "Redeemed token for event %s by %s: %s (scan_count=%s)",
            reserved.event_id,
            employee_id,
            toggle.kind.value,
            reserved.scan_count,
        )
        self._attendance.notify(toggle)
        return Redemption(
            kind=toggle.kind,
            session=toggle.session,
            token=reserved,
            event=event,
            employee=employee,
        )

    def _reserve(self, token_value: str, employee_id: str, now: datetime) -> tuple[ScanToken, EventInfo, EmployeeInfo]:
        for _ in range(CAS_ATTEMPTS):
            current = self._tokens.get(token_value)
            if current is None:
                raise NotFoundError("Invalid QR code")
            if current.is_expired(now):
                raise ExpiredError("QR code has expired")
            if not current.active:
                raise InactiveError("QR code is no longer active")

            event = self._events.get_event(current.event_id)
            if event is None or not event.is_active:
                raise EventUnavailableError("Event is not available")

            employee = self._employees.get_employee(employee_id)
            if employee is None:
                raise NotFoundError("Employee not found")

            updated = current.redeemed()
            if self._tokens.compare_and_swap(current, updated):
                return updated, event, employee
            logger.debug("Token %s changed under us, re-reading", token_value)

        raise UnavailableError("QR code is busy, retry")

    def _release(self, token_value: str) -> None:
        """Give the scan back after the attendance write failed."""

        def attempt() -> None:
            for _ in range(CAS_ATTEMPTS):
                current = self._tokens.get(token_value)
                if current is None:
                    return
                if self._tokens.compare_and_swap(current, current.released()):
                    return
            raise UnavailableError("Could not release token")

        try:
            run_with_retry(attempt)
        except UnavailableError:
            logger.exception("Token %s keeps a scan whose attendance write failed", token_value)
