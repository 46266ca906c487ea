from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.locks import KeyedLock, LockProvider
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ConflictError, NotFoundError, UnavailableError, ValidationError
from ..directory.repository import EmployeeDirectory
from ..notifications.dispatcher import NotificationDispatcher
from .model import LeaveRequest
from .overlap import Overlap, OverlapGuard
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def employee_lock_key(employee_id: str) -> str:
    return f"leave:{employee_id}"


def _conflict(overlap: Overlap) -> ConflictError:
    return ConflictError(
        f"Overlaps approved leave #{overlap.leave_id} "
        f"({overlap.start_date.isoformat()} to {overlap.end_date.isoformat()})"
    )


class LeaveService:
    """Leave requests with the approved-interval overlap guard.

    The guard runs when a request is created (against approved leave only) and
    again at approval, serialised per employee, so two pending requests that
    overlap each other cannot both be approved.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        employees: EmployeeDirectory,
        *,
        guard: Optional[OverlapGuard] = None,
        locks: Optional[LockProvider] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self._leaves = leaves
        self._employees = employees
        self._guard = guard or OverlapGuard(leaves)
        self._locks = locks or KeyedLock()
        self._dispatcher = dispatcher or NotificationDispatcher()

    def create_leave(
        self,
        *,
        employee_id: str,
        start_date: date,
        end_date: date,
        leave_type: LeaveType | str = LeaveType.ANNUAL,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        employee_id = require_non_empty(employee_id, "employeeId")
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        try:
            leave_type = LeaveType(leave_type)
        except ValueError:
            raise ValidationError("Unknown leave type")

        employee = self._employees.get_employee(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        with self._locks.hold(employee_lock_key(employee_id)):
            overlap = self._guard.check_overlap(employee_id, start_date, end_date)
            if overlap:
                raise _conflict(overlap)
            leave_id = self._leaves.create_leave(
                employee_id=employee_id,
                leave_type=leave_type,
                start_date=start_date,
                end_date=end_date,
                reason=(reason or "").strip() or None,
                created_at=now or now_utc(),
            )

        logger.info("Leave #%s requested by %s (%s to %s)", leave_id, employee_id, start_date, end_date)
        self._dispatcher.publish(
            employee_id,
            f"Leave request submitted for {employee.full_name}: {start_date.isoformat()} to {end_date.isoformat()}",
        )
        return leave_id

    def get_leave(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_leave(leave_id=int(leave_id))
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        return self._leaves.list_leaves(status=status, employee_id=employee_id, limit=limit)

    def approve_leave(self, *, leave_id: int, approver_id: str, now: Optional[datetime] = None) -> LeaveRequest:
        approver_id = require_non_empty(approver_id, "approverId")
        leave = self.get_leave(leave_id)

        with self._locks.hold(employee_lock_key(leave.employee_id)):
            # Re-read under the lock: a concurrent decision may have landed.
            leave = self.get_leave(leave_id)
            if leave.status != LeaveStatus.PENDING:
                raise ConflictError(f"Leave request is already {leave.status.value}")

            overlap = self._guard.check_overlap(
                leave.employee_id,
                leave.start_date,
                leave.end_date,
                exclude_leave_id=leave.leave_id,
            )
            if overlap:
                raise _conflict(overlap)

            decided = self._decide(leave, LeaveStatus.APPROVED, approver_id, now, from_statuses=(LeaveStatus.PENDING,))

        self._after_decision(decided, approver_id, "leave.approve")
        return decided

    def reject_leave(self, *, leave_id: int, approver_id: str, now: Optional[datetime] = None) -> LeaveRequest:
        approver_id = require_non_empty(approver_id, "approverId")
        leave = self.get_leave(leave_id)
        with self._locks.hold(employee_lock_key(leave.employee_id)):
            leave = self.get_leave(leave_id)
            decided = self._decide(leave, LeaveStatus.REJECTED, approver_id, now, from_statuses=(LeaveStatus.PENDING,))
        self._after_decision(decided, approver_id, "leave.reject")
        return decided

    def cancel_leave(self, *, leave_id: int, actor_id: str, now: Optional[datetime] = None) -> LeaveRequest:
        """Withdraw a pending or approved request."""
        actor_id = require_non_empty(actor_id, "actorId")
        leave = self.get_leave(leave_id)
        with self._locks.hold(employee_lock_key(leave.employee_id)):
            leave = self.get_leave(leave_id)
            decided = self._decide(
                leave,
                LeaveStatus.CANCELLED,
                actor_id,
                now,
                from_statuses=(LeaveStatus.PENDING, LeaveStatus.APPROVED),
            )
        self._after_decision(decided, actor_id, "leave.cancel")
        return decided

    def _decide(
        self,
        leave: LeaveRequest,
        status: LeaveStatus,
        actor_id: str,
        now: Optional[datetime],
        *,
        from_statuses: Collection[LeaveStatus],
    ) -> LeaveRequest:
        """Conditional status write. Returns the request as stored after the write."""
        decided_at = now or now_utc()
        ok = self._leaves.decide_leave(
            leave_id=leave.leave_id,
            status=status,
            decided_by=actor_id,
            decided_at=decided_at,
            from_statuses=from_statuses,
        )
        if not ok:
            current = self.get_leave(leave.leave_id)
            raise ConflictError(f"Leave request is already {current.status.value}")
        return replace(leave, status=status, decided_by=actor_id, decided_at=decided_at)

    def _after_decision(self, leave: LeaveRequest, actor_id: str, action: str) -> None:
        # The decision is committed; nothing here may fail the caller.
        logger.info("Leave #%s %s by %s", leave.leave_id, leave.status.value, actor_id)

        name = leave.employee_id
        try:
            employee = self._employees.get_employee(leave.employee_id)
            name = employee.full_name if employee else name
        except UnavailableError:
            logger.warning("Directory lookup failed while wording a leave notification")

        self._dispatcher.publish(leave.employee_id, f"Leave request {leave.status.value} for {name}")
        self._dispatcher.record(
            actor_id,
            action,
            {
                "leave_id": leave.leave_id,
                "employee_id": leave.employee_id,
                "start_date": leave.start_date.isoformat(),
                "end_date": leave.end_date.isoformat(),
                "status": leave.status.value,
            },
        )
