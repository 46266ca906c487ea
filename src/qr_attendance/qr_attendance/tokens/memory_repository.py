from __future__ import annotations

import threading
from typing import Optional, Sequence

from .model import ScanToken
from .repository import TokenRepository


class InMemoryTokenRepository(TokenRepository):
    """Process-local token store. Every operation is atomic under one mutex."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: dict[str, ScanToken] = {}

    def get(self, token: str) -> Optional[ScanToken]:
        with self._lock:
            return self._tokens.get(token)

    def insert(self, token: ScanToken) -> bool:
        with self._lock:
            if token.token in self._tokens:
                return False
            self._tokens[token.token] = token
            return True

    def compare_and_swap(self, expected: ScanToken, new: ScanToken) -> bool:
        with self._lock:
            current = self._tokens.get(expected.token)
            if current is None:
                return False
            if not current.same_state(expected):
                return False
            self._tokens[expected.token] = new
            return True

    def list_for_event(self, event_id: str, *, limit: int = 200) -> Sequence[ScanToken]:
        with self._lock:
            rows = [t for t in self._tokens.values() if t.event_id == event_id]
        rows.sort(key=lambda t: t.issued_at, reverse=True)
        return rows[: int(limit)]
