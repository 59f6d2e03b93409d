from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import format_iso_date, parse_iso_date
from ..core.constants import OFFICE_SCHEDULES
from ..core.enums import ScheduleStatus
from ..store.base import DocumentStore, DuplicateKeyError
from .model import OfficeSchedule
from .repository import ScheduleRepository


def to_schedule(r: dict) -> OfficeSchedule:
    return OfficeSchedule(
        schedule_id=str(r["id"]),
        room_id=str(r["roomId"]),
        user_id=str(r["userId"]),
        date=parse_iso_date(str(r["date"])),
        status=ScheduleStatus(r.get("status") or ScheduleStatus.OFFICE.value),
        created_at=int(r.get("createdAt") or 0),
    )


def schedule_key(room_id: str, user_id: str, day: date) -> str:
    return f"{room_id}|{user_id}|{format_iso_date(day)}"


class StoreScheduleRepository(ScheduleRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, schedule_id: str) -> Optional[OfficeSchedule]:
        r = self._store.get(OFFICE_SCHEDULES, schedule_id)
        return to_schedule(r) if r else None

    def get_for_day(self, *, room_id: str, user_id: str, day: date) -> Optional[OfficeSchedule]:
        rows = self._store.query(OFFICE_SCHEDULES, roomId=room_id, userId=user_id, date=format_iso_date(day))
        return to_schedule(rows[0]) if rows else None

    def new_id(self) -> str:
        return self._store.new_id(OFFICE_SCHEDULES)

    def create_if_absent(self, schedule: OfficeSchedule) -> bool:
        try:
            self._store.insert(
                OFFICE_SCHEDULES,
                schedule.schedule_id,
                {
                    "roomId": schedule.room_id,
                    "userId": schedule.user_id,
                    "date": format_iso_date(schedule.date),
                    "status": schedule.status.value,
                    "createdAt": int(schedule.created_at),
                },
                unique_key=schedule_key(schedule.room_id, schedule.user_id, schedule.date),
            )
        except DuplicateKeyError:
            return False
        return True

    def set_status(self, schedule_id: str, status: ScheduleStatus) -> bool:
        return self._store.update(OFFICE_SCHEDULES, schedule_id, {"status": status.value})

    def delete(self, schedule_id: str) -> bool:
        return self._store.compare_and_delete(OFFICE_SCHEDULES, schedule_id, expected={})

    def delete_for_day(self, *, room_id: str, user_id: str, day: date) -> bool:
        existing = self.get_for_day(room_id=room_id, user_id=user_id, day=day)
        if not existing:
            return False
        return self.delete(existing.schedule_id)

    def list_for_room(self, room_id: str, *, user_id: Optional[str] = None) -> Sequence[OfficeSchedule]:
        where = {"roomId": room_id}
        if user_id is not None:
            where["userId"] = user_id
        schedules = [to_schedule(r) for r in self._store.query(OFFICE_SCHEDULES, **where)]
        schedules.sort(key=lambda s: (s.date, s.user_id))
        return schedules
