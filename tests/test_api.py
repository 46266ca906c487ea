from __future__ import annotations

import json

import pytest

from src.qr_attendance.qr_attendance.container import build_memory_container
from src.qr_attendance.qr_attendance.directory.memory_directory import (
    InMemoryEmployeeDirectory,
    InMemoryEventDirectory,
)
from src.qr_attendance.qr_attendance.main import create_app


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    events = InMemoryEventDirectory()
    events.add("evt-1", "Town hall")
    employees = InMemoryEmployeeDirectory()
    employees.add("emp-1", "Ann Lee")
    employees.add("emp-2", "Bob Tran")
    app = create_app(container=build_memory_container(events=events, employees=employees))
    return app.test_client()


def _login(client, employee_id="emp-1"):
    with client.session_transaction() as s:
        s["employee_id"] = employee_id


def _issue(client, **body):
    payload = {"eventId": "evt-1", "expiresIn": 5}
    payload.update(body)
    return client.post("/api/qr/tokens", json=payload)


def test_requires_login(client):
    res = client.post("/api/qr/redeem", json={"qrData": "x"})

    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_issue_and_redeem_flow(client):
    _login(client)
    issued = _issue(client)
    assert issued.status_code == 201
    qr_data = issued.get_json()["qrData"]
    assert json.loads(qr_data)["eventId"] == "evt-1"

    first = client.post("/api/qr/redeem", json={"qrData": qr_data})
    second = client.post("/api/qr/redeem", json={"qrData": json.loads(qr_data)})

    assert first.status_code == 200
    assert first.get_json()["type"] == "checkin"
    assert first.get_json()["attendance"]["status"] == "ACTIVE"
    assert second.get_json()["type"] == "checkout"
    assert second.get_json()["attendance"]["checkOut"] is not None

    listed = client.get("/api/attendance?eventId=evt-1").get_json()["attendance"]
    assert len(listed) == 1
    assert listed[0]["employeeId"] == "emp-1"


def test_single_use_token_second_scan_is_gone(client):
    _login(client)
    qr_data = _issue(client, oneTimeUse=True).get_json()["qrData"]
    client.post("/api/qr/redeem", json={"qrData": qr_data})

    _login(client, "emp-2")
    res = client.post("/api/qr/redeem", json={"qrData": qr_data})

    assert res.status_code == 410
    assert res.get_json()["error"] == "inactive"


@pytest.mark.parametrize(
    "body, status, code",
    [
        ({"expiresIn": 0}, 400, "invalid"),
        ({"expiresIn": 2000}, 400, "invalid"),
        ({"eventId": "missing"}, 404, "not_found"),
        ({"oneTimeUse": "yes"}, 400, "invalid"),
    ],
)
def test_issue_errors(client, body, status, code):
    _login(client)

    res = _issue(client, **body)

    assert res.status_code == status
    assert res.get_json()["error"] == code


def test_redeem_garbage_is_parse_error(client):
    _login(client)

    res = client.post("/api/qr/redeem", json={"qrData": "{not json"})

    assert res.status_code == 400
    assert res.get_json()["error"] == "parse_error"


def test_revoke_then_redeem(client):
    _login(client)
    token = _issue(client).get_json()["token"]

    revoked = client.post(f"/api/qr/tokens/{token['token']}/revoke")
    assert revoked.status_code == 200
    assert revoked.get_json()["token"]["active"] is False

    qr_data = json.dumps({"token": token["token"], "eventId": "evt-1", "expiresAt": token["expiresAt"]})
    res = client.post("/api/qr/redeem", json={"qrData": qr_data})
    assert res.status_code == 410


def test_token_listing_and_image(client):
    _login(client)
    token = _issue(client).get_json()["token"]

    listed = client.get("/api/qr/tokens?eventId=evt-1").get_json()["tokens"]
    image = client.get(f"/api/qr/tokens/{token['token']}/image")

    assert [t["token"] for t in listed] == [token["token"]]
    assert image.status_code == 200
    assert image.mimetype == "image/png"
    assert image.data.startswith(b"\x89PNG")


def test_leave_request_flow(client):
    _login(client)
    created = client.post(
        "/api/leave-requests",
        json={"startDate": "2026-03-01", "endDate": "2026-03-05", "leaveType": "annual"},
    )
    assert created.status_code == 201
    leave_id = created.get_json()["leave"]["leaveId"]

    approved = client.post(f"/api/leave-requests/{leave_id}/approve")
    assert approved.status_code == 200
    assert approved.get_json()["leave"]["status"] == "approved"

    overlapping = client.post("/api/leave-requests", json={"startDate": "2026-03-05", "endDate": "2026-03-06"})
    assert overlapping.status_code == 409
    assert overlapping.get_json()["error"] == "conflict"

    bad_date = client.post("/api/leave-requests", json={"startDate": "03/01/2026", "endDate": "2026-03-06"})
    assert bad_date.status_code == 400

    listed = client.get("/api/leave-requests?status=approved").get_json()["leaves"]
    assert [x["leaveId"] for x in listed] == [leave_id]

    missing = client.post("/api/leave-requests/999/approve")
    assert missing.status_code == 404
