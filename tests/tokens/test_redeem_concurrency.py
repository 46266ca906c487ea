from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from src.qr_attendance.qr_attendance.container import build_memory_container
from src.qr_attendance.qr_attendance.core.enums import ReusePolicy, SessionStatus, ToggleKind
from src.qr_attendance.qr_attendance.core.exceptions import InactiveError
from src.qr_attendance.qr_attendance.directory.memory_directory import (
    InMemoryEmployeeDirectory,
    InMemoryEventDirectory,
)
from src.qr_attendance.qr_attendance.tokens.payload import encode_payload

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
WORKERS = 16


def _container(n_employees: int):
    events = InMemoryEventDirectory()
    events.add("evt-1", "Town hall")
    employees = InMemoryEmployeeDirectory()
    for i in range(n_employees):
        employees.add(f"emp-{i}", f"Employee {i}")
    return build_memory_container(events=events, employees=employees)


def _attempt(container, payload, employee_id):
    try:
        return container.token_redeemer.redeem(payload, employee_id, now=NOW)
    except InactiveError as e:
        return e


def test_single_use_token_has_exactly_one_winner():
    container = _container(WORKERS)
    token = container.token_issuer.issue("evt-1", 10, ReusePolicy.SINGLE_USE, now=NOW)
    payload = encode_payload(token)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(lambda i: _attempt(container, payload, f"emp-{i}"), range(WORKERS)))

    wins = [r for r in results if not isinstance(r, InactiveError)]
    losses = [r for r in results if isinstance(r, InactiveError)]
    assert len(wins) == 1
    assert len(losses) == WORKERS - 1

    stored = container.tokens_repo.get(token.token)
    assert stored.scan_count == 1
    assert stored.active is False
    assert len(container.sessions_repo.list_sessions()) == 1


def test_multi_use_token_admits_every_employee():
    container = _container(WORKERS)
    token = container.token_issuer.issue("evt-1", 10, ReusePolicy.MULTI_USE, now=NOW)
    payload = encode_payload(token)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(lambda i: _attempt(container, payload, f"emp-{i}"), range(WORKERS)))

    assert all(r.kind == ToggleKind.CHECK_IN for r in results)

    stored = container.tokens_repo.get(token.token)
    assert stored.scan_count == WORKERS
    assert stored.active is True

    active = container.sessions_repo.list_sessions(event_id="evt-1", status=SessionStatus.ACTIVE)
    assert sorted(s.employee_id for s in active) == sorted(f"emp-{i}" for i in range(WORKERS))
