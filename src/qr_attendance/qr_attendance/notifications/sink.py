from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def publish(self, employee_id: str, message: str) -> None:
        raise NotImplementedError


class AuditSink(Protocol):
    def record(self, actor_id: str, action: str, metadata: Mapping[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationSink:
    """Writes notifications to the application log only."""

    def publish(self, employee_id: str, message: str) -> None:
        logger.info("notify %s: %s", employee_id, message)


class LoggingAuditSink:
    def record(self, actor_id: str, action: str, metadata: Mapping[str, Any]) -> None:
        logger.info("audit %s %s %s", actor_id, action, dict(metadata))
