from __future__ import annotations

from enum import Enum


class ReusePolicy(str, Enum):
    """How many successful redemptions a scan token allows."""

    SINGLE_USE = "SINGLE_USE"
    MULTI_USE = "MULTI_USE"


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class ToggleKind(str, Enum):
    CHECK_IN = "checkin"
    CHECK_OUT = "checkout"


class EventStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"
    DELETED = "deleted"


class LeaveStatus(str, Enum):
    """Approval flow of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    UNPAID = "unpaid"
    OTHER = "other"
