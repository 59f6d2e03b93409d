from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ScheduleStatus
from ..rooms.model import Room
from ..users.model import User


@dataclass(frozen=True)
class OfficeSchedule:
    """One user's attendance status for one room on one day."""

    schedule_id: str
    room_id: str
    user_id: str
    date: date
    status: ScheduleStatus
    created_at: int


@dataclass(frozen=True)
class ScheduleWithUser:
    """Schedule joined for display; ``user``/``room`` are None when the reference dangles."""

    schedule: OfficeSchedule
    user: Optional[User]
    room: Optional[Room] = None
