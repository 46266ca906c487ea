from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc, to_db_datetime
from ..core.enums import ReusePolicy
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ScanToken
from .repository import TokenRepository

_COLUMNS = "token, event_id, event_name, issued_at, expires_at, reuse_policy, is_active, scan_count, is_revoked"


def _row_to_token(r: dict) -> ScanToken:
    return ScanToken(
        token=r["token"],
        event_id=r["event_id"],
        event_name=r["event_name"],
        issued_at=as_utc(r["issued_at"]),
        expires_at=as_utc(r["expires_at"]),
        reuse_policy=ReusePolicy(r["reuse_policy"]),
        active=bool(r["is_active"]),
        scan_count=int(r["scan_count"]),
        revoked=bool(r["is_revoked"]),
    )


class MySQLTokenRepository(TokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, token: str) -> Optional[ScanToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM scan_tokens WHERE token=%s", (token,))
            r = fetchone(cur)
            return _row_to_token(r) if r else None

    def insert(self, token: ScanToken) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO scan_tokens({_COLUMNS})
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        token.token,
                        token.event_id,
                        token.event_name,
                        to_db_datetime(token.issued_at),
                        to_db_datetime(token.expires_at),
                        token.reuse_policy.value,
                        int(token.active),
                        int(token.scan_count),
                        int(token.revoked),
                    ),
                )
        except mysql.connector.IntegrityError:
            return False
        return True

    def compare_and_swap(self, expected: ScanToken, new: ScanToken) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE scan_tokens
                SET is_active=%s, scan_count=%s, is_revoked=%s
                WHERE token=%s AND is_active=%s AND scan_count=%s AND is_revoked=%s
                """,
                (
                    int(new.active),
                    int(new.scan_count),
                    int(new.revoked),
                    expected.token,
                    int(expected.active),
                    int(expected.scan_count),
                    int(expected.revoked),
                ),
            )
            return cur.rowcount == 1

    def list_for_event(self, event_id: str, *, limit: int = 200) -> Sequence[ScanToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM scan_tokens
                WHERE event_id=%s
                ORDER BY issued_at DESC
                LIMIT %s
                """,
                (event_id, int(limit)),
            )
            return [_row_to_token(r) for r in fetchall(cur)]
