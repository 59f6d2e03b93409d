from __future__ import annotations

import logging
from typing import List, Optional

from ..common.datetime_utils import now_ms
from ..common.validators import coerce_date, optional_text
from ..core.constants import DEFAULT_DELETE_REASON
from ..core.enums import ChangeKind, MemberRole, MemberStatus, RequestStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..rooms.policy import RoomPolicy
from ..rooms.repository import MemberRepository, RoomRepository
from ..schedules.repository import ScheduleRepository
from ..schedules.service import ensure_office_day
from ..users.repository import UserRepository
from .model import ChangeRequest, ChangeRequestView
from .repository import RequestRepository

logger = logging.getLogger(__name__)


class RequestService:
    """Use case: members propose schedule changes, room admins decide.

    A request is resolved exactly once. The terminal status is claimed with a
    compare-and-swap before the schedule is touched, so two admins deciding
    the same request cannot both apply it.
    """

    def __init__(
        self,
        requests: RequestRepository,
        schedules: ScheduleRepository,
        members: MemberRepository,
        rooms: RoomRepository,
        users: UserRepository,
        *,
        policy: Optional[RoomPolicy] = None,
    ):
        self._requests = requests
        self._schedules = schedules
        self._members = members
        self._rooms = rooms
        self._users = users
        self._policy = policy or RoomPolicy(members)

    def request_change(
        self,
        *,
        room_id: str,
        user_id: str,
        original_date=None,
        new_date=None,
        reason: Optional[str] = None,
    ) -> ChangeRequest:
        original = coerce_date(original_date, "Original date")
        new = coerce_date(new_date, "New date")
        if original is None and new is None:
            raise ValidationError("Pick the day to change or the new day")
        if original is not None and original == new:
            raise ValidationError("New date must differ from the original date")

        self._policy.require_active_member(room_id=room_id, user_id=user_id)

        request = ChangeRequest(
            request_id=self._requests.new_id(),
            room_id=room_id,
            user_id=user_id,
            original_date=original,
            new_date=new,
            reason=optional_text(reason),
            status=RequestStatus.PENDING,
            created_at=now_ms(),
        )
        self._requests.create(request)
        logger.info("Change request %s (%s) submitted by %s", request.request_id, request.kind.value, user_id)
        return request

    def request_deletion(self, *, schedule_id: str, user_id: str, reason: Optional[str] = None) -> ChangeRequest:
        """Ask an admin to remove one of the caller's office days."""
        schedule = self._schedules.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")
        if schedule.user_id != user_id:
            raise ValidationError("You can only request deletion of your own office days")

        return self.request_change(
            room_id=schedule.room_id,
            user_id=user_id,
            original_date=schedule.date,
            new_date=None,
            reason=optional_text(reason) or DEFAULT_DELETE_REASON,
        )

    def approve_change_request(self, *, request_id: str, resolver_id: str) -> ChangeRequest:
        request = self._claim(request_id, resolver_id, RequestStatus.APPROVED)
        try:
            self._apply(request)
        except Exception:
            logger.error("Change request %s marked approved but the schedule update failed", request_id)
            raise
        logger.info("Change request %s approved by %s", request_id, resolver_id)
        return self._requests.get_by_id(request_id) or request

    def reject_change_request(self, *, request_id: str, resolver_id: str) -> ChangeRequest:
        request = self._claim(request_id, resolver_id, RequestStatus.REJECTED)
        logger.info("Change request %s rejected by %s", request_id, resolver_id)
        return self._requests.get_by_id(request_id) or request

    def list_pending_for_admin(self, admin_user_id: str) -> List[ChangeRequestView]:
        out: List[ChangeRequestView] = []
        for own in self._members.list_for_user(admin_user_id, status=MemberStatus.ACTIVE):
            if own.role != MemberRole.ADMIN:
                continue
            room = self._rooms.get_by_id(own.room_id)
            pending = self._requests.list_for_room(own.room_id, status=RequestStatus.PENDING)
            users = self._users.get_many(r.user_id for r in pending)
            out.extend(ChangeRequestView(request=r, user=users.get(r.user_id), room=room) for r in pending)
        out.sort(key=lambda v: v.request.created_at)
        return out

    def list_requests_for_user(self, user_id: str) -> List[ChangeRequestView]:
        requests = self._requests.list_for_user(user_id)
        user = self._users.get_by_id(user_id)
        return [ChangeRequestView(request=r, user=user, room=self._rooms.get_by_id(r.room_id)) for r in requests]

    def _claim(self, request_id: str, resolver_id: str, status: RequestStatus) -> ChangeRequest:
        request = self._requests.get_by_id(request_id)
        if not request:
            raise NotFoundError("Change request not found")

        self._policy.require_admin(room_id=request.room_id, user_id=resolver_id)

        if request.is_resolved:
            raise ConflictError(f"Change request was already {request.status.value}")

        if not self._requests.resolve(
            request_id=request_id,
            status=status,
            resolved_by=resolver_id,
            resolved_at=now_ms(),
        ):
            raise ConflictError("Change request was already resolved")
        return request

    def _apply(self, request: ChangeRequest) -> None:
        kind = request.kind
        if kind in (ChangeKind.MOVE, ChangeKind.DELETE):
            removed = self._schedules.delete_for_day(
                room_id=request.room_id,
                user_id=request.user_id,
                day=request.original_date,
            )
            if not removed:
                logger.debug("No schedule on %s to remove for request %s", request.original_date, request.request_id)

        if kind in (ChangeKind.MOVE, ChangeKind.ADD):
            ensure_office_day(
                self._schedules,
                room_id=request.room_id,
                user_id=request.user_id,
                day=request.new_date,
            )
