from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Set

from ..common.datetime_utils import now_ms, today as local_today
from ..common.validators import coerce_date
from ..core.constants import DEFAULT_UPCOMING_DAYS
from ..core.enums import MemberStatus, ScheduleStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..rooms.policy import RoomPolicy
from ..rooms.repository import MemberRepository, RoomRepository
from ..users.repository import UserRepository
from .model import OfficeSchedule, ScheduleWithUser
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def ensure_office_day(schedules: ScheduleRepository, *, room_id: str, user_id: str, day: date) -> bool:
    """Make sure exactly one ``office`` schedule exists for (room, user, day).

    Returns True when a new record was created; an existing ``remote`` day is
    switched to ``office`` in place.
    """
    created = schedules.create_if_absent(
        OfficeSchedule(
            schedule_id=schedules.new_id(),
            room_id=room_id,
            user_id=user_id,
            date=day,
            status=ScheduleStatus.OFFICE,
            created_at=now_ms(),
        )
    )
    if created:
        return True

    existing = schedules.get_for_day(room_id=room_id, user_id=user_id, day=day)
    if existing and existing.status != ScheduleStatus.OFFICE:
        schedules.set_status(existing.schedule_id, ScheduleStatus.OFFICE)
    return False


class ScheduleService:
    def __init__(
        self,
        schedules: ScheduleRepository,
        members: MemberRepository,
        rooms: RoomRepository,
        users: UserRepository,
        *,
        policy: Optional[RoomPolicy] = None,
        upcoming_days: int = DEFAULT_UPCOMING_DAYS,
    ):
        self._schedules = schedules
        self._members = members
        self._rooms = rooms
        self._users = users
        self._policy = policy or RoomPolicy(members)
        self._upcoming_days = upcoming_days

    def assign_schedules(
        self,
        *,
        room_id: str,
        member_user_ids: Iterable[str],
        dates: Iterable[object],
        caller_id: str,
    ) -> int:
        """Give every selected member an office day on every selected date.

        Returns the number of records created. Pairs that already have a
        schedule are left as one ``office`` record rather than duplicated.
        """
        self._policy.require_admin(room_id=room_id, user_id=caller_id)

        user_ids: Set[str] = {str(u).strip() for u in member_user_ids if str(u).strip()}
        days: Set[date] = {coerce_date(d, "Date") for d in dates} - {None}
        if not user_ids:
            raise ValidationError("Select at least one member")
        if not days:
            raise ValidationError("Select at least one date")

        active = {m.user_id for m in self._members.list_for_room(room_id, status=MemberStatus.ACTIVE)}
        outsiders = sorted(user_ids - active)
        if outsiders:
            raise ValidationError(f"Not active members of this room: {', '.join(outsiders)}")

        created = 0
        for user_id in sorted(user_ids):
            for day in sorted(days):
                if ensure_office_day(self._schedules, room_id=room_id, user_id=user_id, day=day):
                    created += 1

        logger.info(
            "Assigned %d date(s) to %d member(s) in room %s (%d created)",
            len(days), len(user_ids), room_id, created,
        )
        return created

    def delete_schedule(self, *, schedule_id: str, caller_id: str) -> None:
        schedule = self._schedules.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")

        if not self._policy.is_admin(room_id=schedule.room_id, user_id=caller_id):
            raise AuthorizationError("Only an admin can delete office days directly; submit a delete request instead")

        if not self._schedules.delete(schedule_id):
            raise NotFoundError("Schedule not found")
        logger.info("Schedule %s deleted by %s", schedule_id, caller_id)

    def get_schedule(self, schedule_id: str) -> OfficeSchedule:
        schedule = self._schedules.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def list_schedules_for_room(self, room_id: str) -> List[ScheduleWithUser]:
        schedules = self._schedules.list_for_room(room_id)
        users = self._users.get_many(s.user_id for s in schedules)
        return [ScheduleWithUser(schedule=s, user=users.get(s.user_id)) for s in schedules]

    def list_upcoming_for_user(
        self,
        user_id: str,
        within_days: Optional[int] = None,
        *,
        include_team: bool = False,
        today: Optional[date] = None,
    ) -> List[ScheduleWithUser]:
        """Schedules dated today..today+within_days (inclusive) in the user's active rooms.

        Only the user's own days unless ``include_team`` is set.
        """
        within_days = self._upcoming_days if within_days is None else int(within_days)
        if within_days < 0:
            raise ValidationError("within_days must not be negative")

        start = today or local_today()
        end = start + timedelta(days=within_days)

        out: List[ScheduleWithUser] = []
        for member in self._members.list_for_user(user_id, status=MemberStatus.ACTIVE):
            room = self._rooms.get_by_id(member.room_id)
            rows = self._schedules.list_for_room(member.room_id, user_id=None if include_team else user_id)
            in_range = [s for s in rows if start <= s.date <= end]
            users = self._users.get_many(s.user_id for s in in_range)
            out.extend(ScheduleWithUser(schedule=s, user=users.get(s.user_id), room=room) for s in in_range)

        out.sort(key=lambda v: (v.schedule.date, v.schedule.room_id, v.schedule.user_id))
        return out
