from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Union

from ..common.datetime_utils import parse_iso_datetime, to_iso
from ..core.exceptions import ParseError
from .model import ScanToken


@dataclass(frozen=True)
class TokenPayload:
    """What a QR code carries: a token reference plus display hints.

    ``expires_at`` is advisory; the stored token decides.
    """

    token: str
    event_id: str
    expires_at: datetime
    event_name: str = ""


def payload_for(token: ScanToken) -> dict:
    return {
        "token": token.token,
        "eventId": token.event_id,
        "expiresAt": to_iso(token.expires_at),
        "eventName": token.event_name,
        "oneTimeUse": token.single_use,
    }


def encode_payload(token: ScanToken) -> str:
    return json.dumps(payload_for(token), separators=(",", ":"))


def _require_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"QR payload is missing '{key}'")
    return value.strip()


def decode_payload(raw: Union[str, bytes, Mapping[str, Any]]) -> TokenPayload:
    """Parse a scanned payload (JSON text or an already-decoded object)."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("QR payload is not valid UTF-8") from exc

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ParseError("QR payload is not valid JSON") from exc
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ParseError("QR payload must be a JSON object")

    token = _require_text(data, "token")
    event_id = _require_text(data, "eventId")
    expires_raw = _require_text(data, "expiresAt")
    try:
        expires_at = parse_iso_datetime(expires_raw)
    except ValueError as exc:
        raise ParseError("QR payload has an invalid 'expiresAt'") from exc

    event_name = data.get("eventName")
    return TokenPayload(
        token=token,
        event_id=event_id,
        expires_at=expires_at,
        event_name=event_name if isinstance(event_name, str) else "",
    )
