from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone

import pytest

from src.qr_attendance.qr_attendance.core.enums import LeaveStatus, LeaveType
from src.qr_attendance.qr_attendance.core.exceptions import ConflictError, NotFoundError, UnavailableError, ValidationError
from src.qr_attendance.qr_attendance.directory.memory_directory import InMemoryEmployeeDirectory
from src.qr_attendance.qr_attendance.leave.memory_repository import InMemoryLeaveRepository
from src.qr_attendance.qr_attendance.leave.service import LeaveService
from src.qr_attendance.qr_attendance.notifications.dispatcher import NotificationDispatcher
from src.qr_attendance.qr_attendance.notifications.memory_sink import InMemoryAuditSink, InMemoryNotificationSink

NOW = datetime(2026, 2, 20, 8, 0, 0, tzinfo=timezone.utc)


def _service():
    employees = InMemoryEmployeeDirectory()
    employees.add("emp-1", "Ann Lee")
    employees.add("emp-2", "Bob Tran")
    repo = InMemoryLeaveRepository()
    sink = InMemoryNotificationSink()
    audit = InMemoryAuditSink()
    svc = LeaveService(repo, employees, dispatcher=NotificationDispatcher(sink, audit))
    return svc, repo, sink, audit


def _create(svc, start, end, employee_id="emp-1", **kw):
    return svc.create_leave(employee_id=employee_id, start_date=start, end_date=end, now=NOW, **kw)


def test_create_leave_is_pending():
    svc, _, sink, _ = _service()

    leave_id = _create(svc, date(2026, 3, 1), date(2026, 3, 3), leave_type="sick", reason="  flu ")

    leave = svc.get_leave(leave_id)
    assert leave.status == LeaveStatus.PENDING
    assert leave.leave_type == LeaveType.SICK
    assert leave.reason == "flu"
    assert leave.days == 3
    assert sink.for_employee("emp-1") == ["Leave request submitted for Ann Lee: 2026-03-01 to 2026-03-03"]


def test_create_leave_validation():
    svc, _, _, _ = _service()

    with pytest.raises(ValidationError):
        _create(svc, date(2026, 3, 5), date(2026, 3, 1))
    with pytest.raises(ValidationError):
        _create(svc, date(2026, 3, 1), date(2026, 3, 2), leave_type="holiday")
    with pytest.raises(NotFoundError):
        _create(svc, date(2026, 3, 1), date(2026, 3, 2), employee_id="ghost")


def test_shared_boundary_day_conflicts_with_approved_leave():
    svc, _, _, _ = _service()
    first = _create(svc, date(2026, 3, 1), date(2026, 3, 5))
    svc.approve_leave(leave_id=first, approver_id="mgr", now=NOW)

    with pytest.raises(ConflictError):
        _create(svc, date(2026, 3, 5), date(2026, 3, 8))

    # The next day is free.
    assert _create(svc, date(2026, 3, 6), date(2026, 3, 8)) > first


def test_other_employees_do_not_conflict():
    svc, _, _, _ = _service()
    first = _create(svc, date(2026, 3, 1), date(2026, 3, 5))
    svc.approve_leave(leave_id=first, approver_id="mgr", now=NOW)

    assert _create(svc, date(2026, 3, 1), date(2026, 3, 5), employee_id="emp-2")


def test_pending_requests_are_rechecked_at_approval():
    svc, _, _, _ = _service()
    a = _create(svc, date(2026, 3, 1), date(2026, 3, 5))
    b = _create(svc, date(2026, 3, 4), date(2026, 3, 9))

    svc.approve_leave(leave_id=a, approver_id="mgr", now=NOW)
    with pytest.raises(ConflictError):
        svc.approve_leave(leave_id=b, approver_id="mgr", now=NOW)

    assert svc.get_leave(b).status == LeaveStatus.PENDING


def test_concurrent_approvals_of_overlapping_requests():
    svc, repo, _, _ = _service()
    ids = [_create(svc, date(2026, 3, 1), date(2026, 3, 5)) for _ in range(6)]

    def approve(leave_id):
        try:
            return svc.approve_leave(leave_id=leave_id, approver_id="mgr", now=NOW)
        except ConflictError as e:
            return e

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(approve, ids))

    assert sum(1 for r in results if not isinstance(r, ConflictError)) == 1
    assert len(repo.list_leaves(status=LeaveStatus.APPROVED, employee_id="emp-1")) == 1


def test_approve_records_decision_and_audit():
    svc, _, sink, audit = _service()
    leave_id = _create(svc, date(2026, 3, 1), date(2026, 3, 2))

    leave = svc.approve_leave(leave_id=leave_id, approver_id="mgr", now=NOW)

    assert leave.status == LeaveStatus.APPROVED
    assert leave.decided_by == "mgr"
    assert leave.decided_at == NOW
    assert sink.for_employee("emp-1")[-1] == "Leave request approved for Ann Lee"
    actor, action, metadata = audit.records[-1]
    assert (actor, action) == ("mgr", "leave.approve")
    assert metadata["leave_id"] == leave_id
    assert metadata["status"] == "approved"


def test_approve_missing_or_decided_request():
    svc, _, _, _ = _service()
    leave_id = _create(svc, date(2026, 3, 1), date(2026, 3, 2))
    svc.reject_leave(leave_id=leave_id, approver_id="mgr", now=NOW)

    with pytest.raises(NotFoundError):
        svc.approve_leave(leave_id=999, approver_id="mgr")
    with pytest.raises(ConflictError):
        svc.approve_leave(leave_id=leave_id, approver_id="mgr")
    with pytest.raises(ConflictError):
        svc.reject_leave(leave_id=leave_id, approver_id="mgr")


def test_cancelled_leave_frees_the_range():
    svc, _, _, audit = _service()
    first = _create(svc, date(2026, 3, 1), date(2026, 3, 5))
    svc.approve_leave(leave_id=first, approver_id="mgr", now=NOW)

    cancelled = svc.cancel_leave(leave_id=first, actor_id="emp-1", now=NOW)

    assert cancelled.status == LeaveStatus.CANCELLED
    assert audit.records[-1][1] == "leave.cancel"
    assert _create(svc, date(2026, 3, 2), date(2026, 3, 3))
    with pytest.raises(ConflictError):
        svc.cancel_leave(leave_id=first, actor_id="emp-1")


def test_list_leaves_filters():
    svc, _, _, _ = _service()
    a = _create(svc, date(2026, 3, 1), date(2026, 3, 2))
    _create(svc, date(2026, 4, 1), date(2026, 4, 2), employee_id="emp-2")
    svc.approve_leave(leave_id=a, approver_id="mgr", now=NOW)

    assert [x.leave_id for x in svc.list_leaves(status=LeaveStatus.APPROVED)] == [a]
    assert [x.employee_id for x in svc.list_leaves(employee_id="emp-2")] == ["emp-2"]


class FlakyEmployees(InMemoryEmployeeDirectory):
    def __init__(self):
        super().__init__()
        self.down = False

    def get_employee(self, employee_id):
        if self.down:
            raise UnavailableError("directory down")
        return super().get_employee(employee_id)


@pytest.mark.parametrize("decision", ["approve", "reject", "cancel"])
def test_decision_survives_directory_outage_after_commit(decision):
    employees = FlakyEmployees()
    employees.add("emp-1", "Ann Lee")
    repo = InMemoryLeaveRepository()
    sink = InMemoryNotificationSink()
    audit = InMemoryAuditSink()
    svc = LeaveService(repo, employees, dispatcher=NotificationDispatcher(sink, audit))
    leave_id = _create(svc, date(2026, 3, 1), date(2026, 3, 2))
    employees.down = True

    if decision == "approve":
        leave = svc.approve_leave(leave_id=leave_id, approver_id="mgr", now=NOW)
        expected = LeaveStatus.APPROVED
    elif decision == "reject":
        leave = svc.reject_leave(leave_id=leave_id, approver_id="mgr", now=NOW)
        expected = LeaveStatus.REJECTED
    else:
        leave = svc.cancel_leave(leave_id=leave_id, actor_id="emp-1", now=NOW)
        expected = LeaveStatus.CANCELLED

    assert leave.status == expected
    assert leave.decided_at == NOW
    assert repo.get_leave(leave_id=leave_id).status == expected
    assert sink.for_employee("emp-1")[-1] == f"Leave request {expected.value} for emp-1"
    assert audit.records[-1][2]["status"] == expected.value


class FailingReadsAfterDecision(InMemoryLeaveRepository):
    """Store that accepts the decision write and then stops answering reads."""

    def __init__(self):
        super().__init__()
        self.decided = False

    def get_leave(self, *, leave_id):
        if self.decided:
            raise UnavailableError("store down")
        return super().get_leave(leave_id=leave_id)

    def decide_leave(self, **kwargs):
        ok = super().decide_leave(**kwargs)
        self.decided = ok
        return ok


def test_approve_returns_decision_without_re_reading_store():
    employees = InMemoryEmployeeDirectory()
    employees.add("emp-1", "Ann Lee")
    repo = FailingReadsAfterDecision()
    svc = LeaveService(repo, employees)
    leave_id = _create(svc, date(2026, 3, 1), date(2026, 3, 2))

    leave = svc.approve_leave(leave_id=leave_id, approver_id="mgr", now=NOW)

    assert leave.status == LeaveStatus.APPROVED
    assert leave.decided_by == "mgr"
