from __future__ import annotations

from enum import Enum


class MemberRole(str, Enum):
    """Role of a user inside one room."""

    ADMIN = "admin"
    MEMBER = "member"


class MemberStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


class ScheduleStatus(str, Enum):
    """Attendance status for one day."""

    OFFICE = "office"
    REMOTE = "remote"


class RequestStatus(str, Enum):
    """Approval flow of a change request. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ChangeKind(str, Enum):
    """Shape of a change request, derived from which dates are set."""

    MOVE = "move"
    ADD = "add"
    DELETE = "delete"
