from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ScanToken


class TokenRepository(Protocol):
    def get(self, token: str) -> Optional[ScanToken]:
        raise NotImplementedError

    def insert(self, token: ScanToken) -> bool:
        """Store a new token. Returns False if the token value is already taken."""

        raise NotImplementedError

    def compare_and_swap(self, expected: ScanToken, new: ScanToken) -> bool:
        """Replace ``expected`` with ``new`` only if the stored row still equals ``expected``.

        Equality is on the mutable fields (``active``, ``scan_count``, ``revoked``).
        """

        raise NotImplementedError

    def list_for_event(self, event_id: str, *, limit: int = 200) -> Sequence[ScanToken]:
        raise NotImplementedError
