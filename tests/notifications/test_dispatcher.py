from __future__ import annotations

import logging

from src.qr_attendance.qr_attendance.notifications.dispatcher import NotificationDispatcher
from src.qr_attendance.qr_attendance.notifications.memory_sink import InMemoryAuditSink, InMemoryNotificationSink


class ExplodingSink:
    def publish(self, employee_id, message):
        raise RuntimeError("smtp down")

    def record(self, actor_id, action, metadata):
        raise RuntimeError("audit db down")


def test_failures_are_logged_and_dropped(caplog):
    dispatcher = NotificationDispatcher(ExplodingSink(), ExplodingSink())

    with caplog.at_level(logging.ERROR):
        dispatcher.publish("emp-1", "hello")
        dispatcher.record("mgr", "leave.approve", {"leave_id": 1})

    assert "Dropped notification for emp-1" in caplog.text
    assert "Dropped audit record leave.approve by mgr" in caplog.text


def test_messages_reach_sinks():
    sink = InMemoryNotificationSink()
    audit = InMemoryAuditSink()
    dispatcher = NotificationDispatcher(sink, audit)

    dispatcher.publish("emp-1", "hello")
    dispatcher.record("mgr", "leave.reject", {"leave_id": 2})

    assert sink.messages == [("emp-1", "hello")]
    assert audit.records == [("mgr", "leave.reject", {"leave_id": 2})]
