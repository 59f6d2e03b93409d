"""Schema of the reserved ``notifications`` collection.

Nothing produces or consumes notifications yet; the shape is kept so stored
records can be read back consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    JOIN_REQUEST = "join_request"
    JOIN_APPROVED = "join_approved"
    JOIN_REJECTED = "join_rejected"
    SCHEDULE_REQUEST = "schedule_request"
    SCHEDULE_APPROVED = "schedule_approved"
    SCHEDULE_REJECTED = "schedule_rejected"


@dataclass(frozen=True)
class Notification:
    notification_id: str
    user_id: str
    room_id: str
    type: NotificationType
    message: str
    read: bool
    created_at: int
    related_id: Optional[str] = None


def to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=str(r["id"]),
        user_id=str(r["userId"]),
        room_id=str(r["roomId"]),
        type=NotificationType(r["type"]),
        message=str(r.get("message") or ""),
        read=bool(r.get("read", False)),
        created_at=int(r.get("createdAt") or 0),
        related_id=r.get("relatedId") or None,
    )
