from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ScheduleStatus
from .model import OfficeSchedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: str) -> Optional[OfficeSchedule]:
        raise NotImplementedError

    def get_for_day(self, *, room_id: str, user_id: str, day: date) -> Optional[OfficeSchedule]:
        raise NotImplementedError

    def new_id(self) -> str:
        raise NotImplementedError

    def create_if_absent(self, schedule: OfficeSchedule) -> bool:
        """Create the schedule unless (room, user, date) already has one.

        Returns True when a record was created.
        """

        raise NotImplementedError

    def set_status(self, schedule_id: str, status: ScheduleStatus) -> bool:
        raise NotImplementedError

    def delete(self, schedule_id: str) -> bool:
        raise NotImplementedError

    def delete_for_day(self, *, room_id: str, user_id: str, day: date) -> bool:
        """Best-effort delete; False when nothing was scheduled that day."""

        raise NotImplementedError

    def list_for_room(self, room_id: str, *, user_id: Optional[str] = None) -> Sequence[OfficeSchedule]:
        """Sorted by date ascending."""

        raise NotImplementedError
