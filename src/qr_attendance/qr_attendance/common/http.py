from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.exceptions import (
    ConflictError,
    DomainError,
    EventUnavailableError,
    ExpiredError,
    InactiveError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)

# Most specific first; ParseError is covered by ValidationError.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ExpiredError, 410),
    (InactiveError, 410),
    (EventUnavailableError, 409),
    (ConflictError, 409),
    (UnavailableError, 503),
)


def status_for(exc: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def error_response(exc: DomainError):
    return jsonify({"success": False, "error": exc.code, "message": str(exc)}), status_for(exc)


def current_employee_id() -> str:
    return str(session["employee_id"])


def login_required(view):
    """The login itself belongs to the auth app; it leaves ``employee_id`` in the session."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return jsonify({"success": False, "error": "unauthorized", "message": "Login required"}), 401
        return view(*args, **kwargs)

    return wrapper
