from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import require_int_range, require_non_empty
from ..core.constants import (
    CAS_ATTEMPTS,
    DEFAULT_LIST_LIMIT,
    DEFAULT_TTL_MINUTES,
    MAX_TTL_MINUTES,
    MIN_TTL_MINUTES,
    TOKEN_ISSUE_ATTEMPTS,
)
from ..core.enums import EventStatus, ReusePolicy
from ..core.exceptions import NotFoundError, UnavailableError, ValidationError
from ..directory.repository import EventDirectory
from .model import ScanToken
from .repository import TokenRepository

logger = logging.getLogger(__name__)

TokenFactory = Callable[[str, datetime], str]


def default_token_value(event_id: str, now: datetime) -> str:
    """``<event>-<epoch ms>-<random>``; the random part carries the uniqueness."""
    return f"{event_id}-{int(now.timestamp() * 1000)}-{secrets.token_urlsafe(12)}"


class TokenIssuer:
    """Creates, lists and revokes scan tokens for events."""

    def __init__(
        self,
        tokens: TokenRepository,
        events: EventDirectory,
        *,
        token_factory: Optional[TokenFactory] = None,
        default_ttl_minutes: int = DEFAULT_TTL_MINUTES,
    ):
        self._tokens = tokens
        self._events = events
        self._token_factory = token_factory or default_token_value
        self._default_ttl = int(default_ttl_minutes)

    def issue(
        self,
        event_id: str,
        ttl_minutes: Optional[int] = None,
        reuse_policy: ReusePolicy = ReusePolicy.MULTI_USE,
        *,
        now: Optional[datetime] = None,
    ) -> ScanToken:
        event_id = require_non_empty(event_id, "eventId")
        ttl = require_int_range(
            self._default_ttl if ttl_minutes is None else ttl_minutes,
            "expiresIn",
            low=MIN_TTL_MINUTES,
            high=MAX_TTL_MINUTES,
        )
        try:
            reuse_policy = ReusePolicy(reuse_policy)
        except ValueError:
            raise ValidationError("Unknown reuse policy")

        event = self._events.get_event(event_id)
        if not event or event.status == EventStatus.DELETED:
            raise NotFoundError("Event not found")

        now = now or now_utc()
        expires_at = now + timedelta(minutes=ttl)

        for _ in range(TOKEN_ISSUE_ATTEMPTS):
            token = ScanToken(
                token=self._token_factory(event.event_id, now),
                event_id=event.event_id,
                event_name=event.event_name,
                issued_at=now,
                expires_at=expires_at,
                reuse_policy=reuse_policy,
            )
            if self._tokens.insert(token):
                logger.info(
                    "Issued %s token for event %s (expires %s)",
                    reuse_policy.value,
                    event.event_id,
                    expires_at.isoformat(),
                )
                return token
            logger.warning("Token value collision for event %s, regenerating", event.event_id)

        raise UnavailableError("Could not allocate a unique token, retry")

    def revoke(self, token_value: str) -> ScanToken:
        """Deactivate a token for good. Revoking twice is a no-op.

        A token that is only spent (or reserved by an in-flight scan) is still
        marked revoked, so a rolled-back scan cannot bring it back.
        """
        for _ in range(CAS_ATTEMPTS):
            current = self._tokens.get(token_value)
            if current is None:
                raise NotFoundError("Token not found")
            if current.revoked:
                return current
            updated = current.as_revoked()
            if self._tokens.compare_and_swap(current, updated):
                logger.info("Revoked token for event %s", current.event_id)
                return updated
        raise UnavailableError("Token is busy, retry")

    def get(self, token_value: str) -> ScanToken:
        token = self._tokens.get(token_value)
        if token is None:
            raise NotFoundError("Token not found")
        return token

    def list_for_event(self, event_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ScanToken]:
        return self._tokens.list_for_event(require_non_empty(event_id, "eventId"), limit=limit)
