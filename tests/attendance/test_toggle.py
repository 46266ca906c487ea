from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from src.qr_attendance.qr_attendance.attendance.memory_repository import InMemorySessionRepository
from src.qr_attendance.qr_attendance.attendance.service import AttendanceService
from src.qr_attendance.qr_attendance.core.enums import SessionStatus, ToggleKind
from src.qr_attendance.qr_attendance.core.exceptions import UnavailableError
from src.qr_attendance.qr_attendance.notifications.dispatcher import NotificationDispatcher
from src.qr_attendance.qr_attendance.notifications.memory_sink import InMemoryNotificationSink

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def _service(repo=None):
    repo = repo or InMemorySessionRepository()
    sink = InMemoryNotificationSink()
    return AttendanceService(repo, dispatcher=NotificationDispatcher(sink)), repo, sink


def test_first_toggle_opens_session():
    svc, repo, _ = _service()

    result = svc.toggle("emp-1", "evt-1", now=NOW)

    assert result.kind == ToggleKind.CHECK_IN
    assert result.session.status == SessionStatus.ACTIVE
    assert result.session.check_in == NOW
    assert result.session.check_out is None
    assert repo.get_active(employee_id="emp-1", event_id="evt-1") == result.session


def test_toggles_alternate_and_reuse_the_open_record():
    svc, repo, _ = _service()
    kinds = []
    ids = []
    for minute in range(4):
        r = svc.toggle("emp-1", "evt-1", now=NOW + timedelta(minutes=minute))
        kinds.append(r.kind)
        ids.append(r.session.session_id)

    assert kinds == [ToggleKind.CHECK_IN, ToggleKind.CHECK_OUT, ToggleKind.CHECK_IN, ToggleKind.CHECK_OUT]
    assert ids[0] == ids[1]
    assert ids[2] == ids[3]
    assert ids[0] != ids[2]

    sessions = repo.list_sessions(employee_id="emp-1")
    assert len(sessions) == 2
    assert all(s.status == SessionStatus.COMPLETED and s.check_out is not None for s in sessions)


def test_pairs_are_independent():
    svc, _, _ = _service()

    svc.toggle("emp-1", "evt-1", now=NOW)

    assert svc.toggle("emp-1", "evt-2", now=NOW).kind == ToggleKind.CHECK_IN
    assert svc.toggle("emp-2", "evt-1", now=NOW).kind == ToggleKind.CHECK_IN


def test_check_out_never_precedes_check_in():
    svc, _, _ = _service()
    svc.toggle("emp-1", "evt-1", now=NOW)

    result = svc.toggle("emp-1", "evt-1", now=NOW - timedelta(seconds=3))

    assert result.session.check_out == NOW


def test_concurrent_toggles_keep_one_active_session():
    svc, repo, _ = _service()
    n = 10

    with ThreadPoolExecutor(max_workers=n) as pool:
        results = list(pool.map(lambda _: svc.toggle("emp-1", "evt-1", now=NOW), range(n)))

    kinds = [r.kind for r in results]
    assert kinds.count(ToggleKind.CHECK_IN) == n // 2
    assert kinds.count(ToggleKind.CHECK_OUT) == n // 2
    assert repo.list_sessions(status=SessionStatus.ACTIVE) == []
    assert len(repo.list_sessions()) == n // 2


class AlwaysRacingRepo(InMemorySessionRepository):
    """Every conditional create loses, as if another process won each time."""

    def create_active(self, *, employee_id, event_id, check_in):
        return None


def test_toggle_gives_up_when_store_keeps_refusing():
    svc, _, _ = _service(AlwaysRacingRepo())

    with pytest.raises(UnavailableError):
        svc.toggle("emp-1", "evt-1", now=NOW)


def test_notification_uses_ids_without_directories():
    svc, _, sink = _service()

    svc.toggle("emp-1", "evt-1", now=NOW)

    assert sink.for_employee("emp-1") == ["emp-1 checked in to evt-1"]
