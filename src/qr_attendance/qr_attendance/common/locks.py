from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol

from ..core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from ..core.exceptions import UnavailableError


class LockProvider(Protocol):
    """Per-key critical sections.

    Implementations: ``KeyedLock`` (one process) and
    ``database.named_lock.MySQLNamedLock`` (shared across processes).
    """

    def hold(self, key: str) -> ContextManager[None]:
        raise NotImplementedError


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    """In-process mutex registry keyed by string.

    Entries are created on demand and dropped once no thread holds or waits
    on them, so the registry does not grow with every token ever scanned.
    """

    def __init__(self, *, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self._timeout = float(timeout)
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        acquired = entry.lock.acquire(timeout=self._timeout)
        try:
            if not acquired:
                raise UnavailableError(f"Timed out waiting for lock {key!r}")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
