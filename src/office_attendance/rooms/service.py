from __future__ import annotations

import logging
from typing import List, Optional

from ..common.datetime_utils import now_ms
from ..common.validators import require_non_empty
from ..core.constants import INVITE_CODE_LENGTH
from ..core.enums import MemberRole, MemberStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..store.base import DuplicateKeyError
from ..users.repository import UserRepository
from .invite_codes import generate_invite_code, normalize_invite_code
from .model import MemberWithUser, PendingMember, Room, RoomMember, RoomWithMembership
from .policy import RoomPolicy
from .repository import MemberRepository, RoomRepository

logger = logging.getLogger(__name__)


class MembershipService:
    """Use case: create rooms, join by invite code, admit or turn away members."""

    def __init__(
        self,
        rooms: RoomRepository,
        members: MemberRepository,
        users: UserRepository,
        *,
        policy: Optional[RoomPolicy] = None,
        invite_code_length: int = INVITE_CODE_LENGTH,
    ):
        self._rooms = rooms
        self._members = members
        self._users = users
        self._policy = policy or RoomPolicy(members)
        self._invite_code_length = invite_code_length

    def create_room(self, *, name: str, creator_id: str) -> Room:
        """Create a room and its creator's active admin membership.

        The two writes are not atomic: if the membership write fails the room
        is left without members. That is logged and the error re-raised.
        """
        name = require_non_empty(name, "Room name")
        creator_id = require_non_empty(creator_id, "Creator")

        now = now_ms()
        room = Room(
            room_id=self._rooms.new_id(),
            name=name,
            created_by=creator_id,
            created_at=now,
            invite_code=generate_invite_code(self._invite_code_length),
        )
        self._rooms.create(room)

        admin = RoomMember(
            member_id=self._members.new_id(),
            room_id=room.room_id,
            user_id=creator_id,
            role=MemberRole.ADMIN,
            status=MemberStatus.ACTIVE,
            created_at=now,
        )
        try:
            self._members.create(admin)
        except Exception:
            logger.error("Room %s created but admin membership for %s failed; room is orphaned", room.room_id, creator_id)
            raise

        logger.info("Room %s created by %s", room.room_id, creator_id)
        return room

    def join_room_by_code(self, *, code: str, user_id: str) -> RoomMember:
        code = normalize_invite_code(code)
        if not code:
            raise ValidationError("Invite code must not be empty")

        room = self._rooms.get_by_invite_code(code)
        if not room:
            raise NotFoundError(f"No room found for invite code {code}")

        if self._members.get_for_room_and_user(room_id=room.room_id, user_id=user_id):
            raise ConflictError("You already joined or requested to join this room")

        member = RoomMember(
            member_id=self._members.new_id(),
            room_id=room.room_id,
            user_id=user_id,
            role=MemberRole.MEMBER,
            status=MemberStatus.PENDING,
            created_at=now_ms(),
        )
        try:
            self._members.create(member)
        except DuplicateKeyError:
            raise ConflictError("You already joined or requested to join this room")

        logger.info("User %s requested to join room %s", user_id, room.room_id)
        return member

    def approve_membership(self, *, member_id: str, caller_id: str) -> None:
        member = self._require_member(member_id)
        self._policy.require_admin(room_id=member.room_id, user_id=caller_id)

        if member.status == MemberStatus.ACTIVE:
            return

        if not self._members.activate(member_id):
            current = self._members.get_by_id(member_id)
            if current and current.status == MemberStatus.ACTIVE:
                return
            raise ConflictError("Join request was already handled")
        logger.info("Member %s approved by %s", member_id, caller_id)

    def reject_membership(self, *, member_id: str, caller_id: str) -> None:
        member = self._require_member(member_id)
        self._policy.require_admin(room_id=member.room_id, user_id=caller_id)

        if member.status != MemberStatus.PENDING:
            raise ConflictError("Only pending join requests can be rejected")

        if not self._members.delete_pending(member_id):
            raise ConflictError("Join request was already handled")
        logger.info("Member %s rejected by %s", member_id, caller_id)

    def list_members_for_room(self, room_id: str, *, status: Optional[MemberStatus] = None) -> List[MemberWithUser]:
        members = self._members.list_for_room(room_id, status=status)
        users = self._users.get_many(m.user_id for m in members)
        return [MemberWithUser(member=m, user=users[m.user_id]) for m in members if m.user_id in users]

    def list_rooms_for_user(self, user_id: str, *, status: Optional[MemberStatus] = None) -> List[RoomWithMembership]:
        out: List[RoomWithMembership] = []
        for member in self._members.list_for_user(user_id, status=status):
            room = self._rooms.get_by_id(member.room_id)
            if room:
                out.append(RoomWithMembership(room=room, member=member))
        return out

    def list_pending_members_for_admin(self, admin_user_id: str) -> List[PendingMember]:
        out: List[PendingMember] = []
        for own in self._members.list_for_user(admin_user_id, status=MemberStatus.ACTIVE):
            if own.role != MemberRole.ADMIN:
                continue
            room = self._rooms.get_by_id(own.room_id)
            pending = self._members.list_for_room(own.room_id, status=MemberStatus.PENDING)
            users = self._users.get_many(m.user_id for m in pending)
            out.extend(PendingMember(member=m, user=users.get(m.user_id), room=room) for m in pending)
        out.sort(key=lambda p: p.member.created_at)
        return out

    def get_room(self, room_id: str) -> Room:
        room = self._rooms.get_by_id(room_id)
        if not room:
            raise NotFoundError("Room not found")
        return room

    def _require_member(self, member_id: str) -> RoomMember:
        member = self._members.get_by_id(member_id)
        if not member:
            raise NotFoundError("Membership not found")
        return member
