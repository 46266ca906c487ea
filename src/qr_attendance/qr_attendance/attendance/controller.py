from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import to_iso
from ..common.http import error_response, login_required
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import SessionStatus
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import AttendanceSession


def session_json(s: AttendanceSession) -> dict:
    return {
        "sessionId": s.session_id,
        "employeeId": s.employee_id,
        "eventId": s.event_id,
        "checkIn": to_iso(s.check_in),
        "checkOut": to_iso(s.check_out) if s.check_out else None,
        "status": s.status.value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["GET"], endpoint="api_list_attendance")
    @login_required
    def api_list_attendance():
        try:
            status_raw = request.args.get("status")
            try:
                status = SessionStatus(status_raw.upper()) if status_raw else None
            except ValueError:
                raise ValidationError("Unknown session status")

            sessions = container.attendance_service.list_sessions(
                event_id=request.args.get("eventId") or None,
                employee_id=request.args.get("employeeId") or None,
                status=status,
                limit=request.args.get("limit", DEFAULT_LIST_LIMIT, type=int),
            )
            return jsonify({"success": True, "attendance": [session_json(s) for s in sessions]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            app.logger.exception("Unexpected error while listing attendance")
            return jsonify({"success": False, "error": "internal", "message": "Internal server error"}), 500
