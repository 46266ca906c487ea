from __future__ import annotations

from datetime import date, datetime

import pytest

from src.qr_attendance.qr_attendance.core.enums import LeaveStatus, LeaveType
from src.qr_attendance.qr_attendance.leave.memory_repository import InMemoryLeaveRepository
from src.qr_attendance.qr_attendance.leave.overlap import OverlapGuard, intervals_overlap

CREATED = datetime(2026, 2, 1, 8, 0, 0)


def _approved(repo, employee_id, start, end):
    leave_id = repo.create_leave(
        employee_id=employee_id,
        leave_type=LeaveType.ANNUAL,
        start_date=start,
        end_date=end,
        reason=None,
        created_at=CREATED,
    )
    repo.decide_leave(leave_id=leave_id, status=LeaveStatus.APPROVED, decided_by="mgr", decided_at=CREATED)
    return leave_id


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((1, 5), (5, 8), True),
        ((1, 5), (6, 8), False),
        ((3, 3), (1, 5), True),
        ((1, 2), (3, 3), False),
        ((4, 9), (1, 5), True),
    ],
)
def test_closed_interval_overlap(a, b, expected):
    d = lambda day: date(2026, 3, day)  # noqa: E731
    assert intervals_overlap(d(a[0]), d(a[1]), d(b[0]), d(b[1])) is expected
    assert intervals_overlap(d(b[0]), d(b[1]), d(a[0]), d(a[1])) is expected


def test_returns_earliest_conflict():
    repo = InMemoryLeaveRepository()
    later = _approved(repo, "emp-1", date(2026, 3, 10), date(2026, 3, 12))
    earlier = _approved(repo, "emp-1", date(2026, 3, 2), date(2026, 3, 4))

    overlap = OverlapGuard(repo).check_overlap("emp-1", date(2026, 3, 1), date(2026, 3, 31))

    assert overlap is not None
    assert overlap.leave_id == earlier
    assert later != earlier


def test_only_approved_leave_of_same_employee_counts():
    repo = InMemoryLeaveRepository()
    _approved(repo, "emp-2", date(2026, 3, 1), date(2026, 3, 5))
    repo.create_leave(
        employee_id="emp-1",
        leave_type=LeaveType.SICK,
        start_date=date(2026, 3, 1),
        end_date=date(2026, 3, 5),
        reason=None,
        created_at=CREATED,
    )

    assert OverlapGuard(repo).check_overlap("emp-1", date(2026, 3, 1), date(2026, 3, 5)) is None


def test_excluded_leave_is_ignored():
    repo = InMemoryLeaveRepository()
    own = _approved(repo, "emp-1", date(2026, 3, 1), date(2026, 3, 5))

    guard = OverlapGuard(repo)

    assert guard.check_overlap("emp-1", date(2026, 3, 1), date(2026, 3, 5), exclude_leave_id=own) is None
    assert guard.check_overlap("emp-1", date(2026, 3, 1), date(2026, 3, 5)).leave_id == own
