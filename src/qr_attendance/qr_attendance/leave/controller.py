from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, to_iso
from ..common.http import current_employee_id, error_response, login_required
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import LeaveStatus
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import LeaveRequest


def leave_json(leave: LeaveRequest) -> dict:
    return {
        "leaveId": leave.leave_id,
        "employeeId": leave.employee_id,
        "leaveType": leave.leave_type.value,
        "startDate": leave.start_date.isoformat(),
        "endDate": leave.end_date.isoformat(),
        "days": leave.days,
        "reason": leave.reason,
        "status": leave.status.value,
        "createdAt": to_iso(leave.created_at),
        "decidedBy": leave.decided_by,
        "decidedAt": to_iso(leave.decided_at) if leave.decided_at else None,
    }


def register(app: Flask, container: Container) -> None:
    def _parse_date(v, field_name: str):
        try:
            return parse_iso_date(str(v or ""))
        except ValueError:
            raise ValidationError(f"{field_name} must be YYYY-MM-DD")

    def _server_error(what: str):
        app.logger.exception("Unexpected error while %s", what)
        return jsonify({"success": False, "error": "internal", "message": "Internal server error"}), 500

    @app.route("/api/leave-requests", methods=["POST"], endpoint="api_create_leave")
    @login_required
    def api_create_leave():
        try:
            data = request.get_json(silent=True) or {}
            leave_id = container.leave_service.create_leave(
                employee_id=current_employee_id(),
                start_date=_parse_date(data.get("startDate"), "startDate"),
                end_date=_parse_date(data.get("endDate"), "endDate"),
                leave_type=data.get("leaveType") or "annual",
                reason=data.get("reason") or "",
            )
            leave = container.leave_service.get_leave(leave_id)
            return jsonify({"success": True, "leave": leave_json(leave)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("creating a leave request")

    @app.route("/api/leave-requests", methods=["GET"], endpoint="api_list_leaves")
    @login_required
    def api_list_leaves():
        try:
            status_raw = request.args.get("status")
            try:
                status = LeaveStatus(status_raw.lower()) if status_raw else None
            except ValueError:
                raise ValidationError("Unknown leave status")

            leaves = container.leave_service.list_leaves(
                status=status,
                employee_id=request.args.get("employeeId") or None,
                limit=request.args.get("limit", DEFAULT_LIST_LIMIT, type=int),
            )
            return jsonify({"success": True, "leaves": [leave_json(x) for x in leaves]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("listing leave requests")

    @app.route("/api/leave-requests/<int:leave_id>/approve", methods=["POST"], endpoint="api_approve_leave")
    @login_required
    def api_approve_leave(leave_id: int):
        try:
            leave = container.leave_service.approve_leave(leave_id=leave_id, approver_id=current_employee_id())
            return jsonify({"success": True, "leave": leave_json(leave)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("approving a leave request")

    @app.route("/api/leave-requests/<int:leave_id>/reject", methods=["POST"], endpoint="api_reject_leave")
    @login_required
    def api_reject_leave(leave_id: int):
        try:
            leave = container.leave_service.reject_leave(leave_id=leave_id, approver_id=current_employee_id())
            return jsonify({"success": True, "leave": leave_json(leave)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("rejecting a leave request")

    @app.route("/api/leave-requests/<int:leave_id>/cancel", methods=["POST"], endpoint="api_cancel_leave")
    @login_required
    def api_cancel_leave(leave_id: int):
        try:
            leave = container.leave_service.cancel_leave(leave_id=leave_id, actor_id=current_employee_id())
            return jsonify({"success": True, "leave": leave_json(leave)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("cancelling a leave request")
