from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .sink import AuditSink, LoggingAuditSink, LoggingNotificationSink, NotificationSink

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget side effects.

    Sink failures are logged and dropped; they never fail the operation that
    triggered them.
    """

    def __init__(self, notifications: Optional[NotificationSink] = None, audit: Optional[AuditSink] = None):
        self._notifications = notifications or LoggingNotificationSink()
        self._audit = audit or LoggingAuditSink()

    def publish(self, employee_id: str, message: str) -> None:
        try:
            self._notifications.publish(employee_id, message)
        except Exception:
            logger.exception("Dropped notification for %s", employee_id)

    def record(self, actor_id: str, action: str, metadata: Mapping[str, Any]) -> None:
        try:
            self._audit.record(actor_id, action, metadata)
        except Exception:
            logger.exception("Dropped audit record %s by %s", action, actor_id)
