from __future__ import annotations

from ..core.enums import MemberStatus
from ..core.exceptions import AuthorizationError
from .model import RoomMember
from .repository import MemberRepository


class RoomPolicy:
    """Role checks shared by the membership, schedule and request services.

    The store has no access control, so every admin-only mutation is gated
    here before it is issued.
    """

    def __init__(self, members: MemberRepository):
        self._members = members

    def is_admin(self, *, room_id: str, user_id: str) -> bool:
        member = self._members.get_for_room_and_user(room_id=room_id, user_id=user_id)
        return bool(member and member.is_active_admin)

    def require_admin(self, *, room_id: str, user_id: str) -> RoomMember:
        member = self._members.get_for_room_and_user(room_id=room_id, user_id=user_id)
        if not member or not member.is_active_admin:
            raise AuthorizationError("Only an active admin of this room can do that")
        return member

    def require_active_member(self, *, room_id: str, user_id: str) -> RoomMember:
        member = self._members.get_for_room_and_user(room_id=room_id, user_id=user_id)
        if not member or member.status != MemberStatus.ACTIVE:
            raise AuthorizationError("You are not an active member of this room")
        return member
