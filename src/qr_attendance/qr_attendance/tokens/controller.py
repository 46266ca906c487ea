from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..attendance.controller import session_json
from ..common.datetime_utils import to_iso
from ..common.http import current_employee_id, error_response, login_required
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ReusePolicy, ToggleKind
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .model import ScanToken
from .payload import encode_payload
from .qr_image import render_token_png


def token_json(token: ScanToken) -> dict:
    return {
        "token": token.token,
        "eventId": token.event_id,
        "eventName": token.event_name,
        "issuedAt": to_iso(token.issued_at),
        "expiresAt": to_iso(token.expires_at),
        "oneTimeUse": token.single_use,
        "active": token.active,
        "scanCount": token.scan_count,
        "revoked": token.revoked,
    }


def register(app: Flask, container: Container) -> None:
    def _server_error(what: str):
        app.logger.exception("Unexpected error while %s", what)
        return jsonify({"success": False, "error": "internal", "message": "Internal server error"}), 500

    @app.route("/api/qr/tokens", methods=["POST"], endpoint="api_issue_token")
    @login_required
    def api_issue_token():
        try:
            data = request.get_json(silent=True) or {}
            one_time = data.get("oneTimeUse", False)
            if not isinstance(one_time, bool):
                raise ValidationError("oneTimeUse must be a boolean")

            token = container.token_issuer.issue(
                data.get("eventId") or "",
                data.get("expiresIn"),
                ReusePolicy.SINGLE_USE if one_time else ReusePolicy.MULTI_USE,
            )
            return jsonify({"success": True, "token": token_json(token), "qrData": encode_payload(token)}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("issuing a token")

    @app.route("/api/qr/tokens", methods=["GET"], endpoint="api_list_tokens")
    @login_required
    def api_list_tokens():
        try:
            limit = request.args.get("limit", DEFAULT_LIST_LIMIT, type=int)
            tokens = container.token_issuer.list_for_event(request.args.get("eventId", ""), limit=limit)
            return jsonify({"success": True, "tokens": [token_json(t) for t in tokens]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("listing tokens")

    @app.route("/api/qr/tokens/<token>/revoke", methods=["POST"], endpoint="api_revoke_token")
    @login_required
    def api_revoke_token(token: str):
        try:
            revoked = container.token_issuer.revoke(token)
            return jsonify({"success": True, "token": token_json(revoked)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("revoking a token")

    @app.route("/api/qr/tokens/<token>/image", methods=["GET"], endpoint="api_token_image")
    @login_required
    def api_token_image(token: str):
        try:
            png = render_token_png(container.token_issuer.get(token))
            return send_file(io.BytesIO(png), mimetype="image/png")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("rendering a QR image")

    @app.route("/api/qr/redeem", methods=["POST"], endpoint="api_redeem_token")
    @login_required
    def api_redeem_token():
        """Scan endpoint: checks in on the first scan, out on the next."""
        try:
            data = request.get_json(silent=True) or {}
            qr_data = data.get("qrData")
            if qr_data is None or qr_data == "":
                raise ValidationError("qrData is required")

            result = container.token_redeemer.redeem(qr_data, current_employee_id())
            verb = "Checked in to" if result.kind == ToggleKind.CHECK_IN else "Checked out of"
            return jsonify(
                {
                    "success": True,
                    "type": result.kind.value,
                    "attendance": session_json(result.session),
                    "event": {"eventId": result.event.event_id, "eventName": result.event.event_name},
                    "message": f"{verb} {result.event.event_name}",
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _server_error("redeeming a token")
