from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest
from .repository import LeaveRepository


class InMemoryLeaveRepository(LeaveRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_id = 1
        self._leaves: dict[int, LeaveRequest] = {}

    def create_leave(
        self,
        *,
        employee_id: str,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        created_at: datetime,
    ) -> int:
        with self._lock:
            leave_id = self._next_id
            self._next_id += 1
            self._leaves[leave_id] = LeaveRequest(
                leave_id=leave_id,
                employee_id=employee_id,
                leave_type=leave_type,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
                status=LeaveStatus.PENDING,
                created_at=created_at,
            )
            return leave_id

    def get_leave(self, *, leave_id: int) -> Optional[LeaveRequest]:
        with self._lock:
            return self._leaves.get(int(leave_id))

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[str] = None,
        limit: Optional[int] = 200,
    ) -> Sequence[LeaveRequest]:
        with self._lock:
            rows = list(self._leaves.values())
        if status is not None:
            rows = [r for r in rows if r.status == status]
        if employee_id is not None:
            rows = [r for r in rows if r.employee_id == employee_id]
        rows.sort(key=lambda r: (r.created_at, r.leave_id), reverse=True)
        return rows if limit is None else rows[: int(limit)]

    def decide_leave(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: str,
        decided_at: datetime,
        from_statuses: Collection[LeaveStatus] = (LeaveStatus.PENDING,),
    ) -> bool:
        with self._lock:
            current = self._leaves.get(int(leave_id))
            if current is None or current.status not in from_statuses:
                return False
            self._leaves[current.leave_id] = replace(
                current,
                status=status,
                decided_by=decided_by,
                decided_at=decided_at,
            )
            return True
