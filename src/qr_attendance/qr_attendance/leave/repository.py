from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
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
        raise NotImplementedError

    def get_leave(self, *, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[str] = None,
        limit: Optional[int] = 200,
    ) -> Sequence[LeaveRequest]:
        """Newest first. ``limit=None`` returns every match."""

        raise NotImplementedError

    def decide_leave(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: str,
        decided_at: datetime,
        from_statuses: Collection[LeaveStatus] = (LeaveStatus.PENDING,),
    ) -> bool:
        """Move a request to ``status`` only if it is currently in ``from_statuses``."""

        raise NotImplementedError
