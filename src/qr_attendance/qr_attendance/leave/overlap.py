from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import LeaveStatus
from .repository import LeaveRepository


def intervals_overlap(s1: date, e1: date, s2: date, e2: date) -> bool:
    """Closed intervals: sharing a single day counts."""
    return s1 <= e2 and s2 <= e1


@dataclass(frozen=True)
class Overlap:
    leave_id: int
    start_date: date
    end_date: date


class OverlapGuard:
    """Finds an APPROVED leave of the same employee intersecting a date range."""

    def __init__(self, leaves: LeaveRepository):
        self._leaves = leaves

    def check_overlap(
        self,
        employee_id: str,
        start_date: date,
        end_date: date,
        *,
        exclude_leave_id: Optional[int] = None,
    ) -> Optional[Overlap]:
        """Return the first conflict ordered by (start_date, leave_id), or None when clear."""
        approved = self._leaves.list_leaves(status=LeaveStatus.APPROVED, employee_id=employee_id, limit=None)
        for leave in sorted(approved, key=lambda r: (r.start_date, r.leave_id)):
            if exclude_leave_id is not None and leave.leave_id == exclude_leave_id:
                continue
            if intervals_overlap(start_date, end_date, leave.start_date, leave.end_date):
                return Overlap(leave_id=leave.leave_id, start_date=leave.start_date, end_date=leave.end_date)
        return None
