from __future__ import annotations

import hashlib
from contextlib import contextmanager
from typing import Iterator

import mysql.connector

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import UnavailableError
from .connection import DatabaseConnection

_MAX_NAME = 64


class MySQLNamedLock:
    """Per-key lock shared by every process talking to the same MySQL server.

    Uses ``GET_LOCK``/``RELEASE_LOCK`` on a dedicated connection held for the
    duration of the critical section.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._timeout = float(timeout)

    @staticmethod
    def lock_name(key: str) -> str:
        name = f"qr_attendance:{key}"
        if len(name) <= _MAX_NAME:
            return name
        return "qr_attendance:" + hashlib.sha1(key.encode("utf-8")).hexdigest()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        name = self.lock_name(key)
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._timeout))
                row = cur.fetchone()
            except mysql.connector.Error as exc:
                raise UnavailableError("Lock service unavailable") from exc
            if not row or row[0] != 1:
                raise UnavailableError(f"Timed out waiting for lock {key!r}")
            try:
                yield
            finally:
                try:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                    cur.fetchone()
                except mysql.connector.Error:
                    # Closing the connection releases the lock server-side.
                    pass
                cur.close()
        finally:
            conn.close()
