from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import MemberRole, MemberStatus
from ..users.model import User


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    created_by: str
    created_at: int
    invite_code: str


@dataclass(frozen=True)
class RoomMember:
    """One user's relationship to one room.

    Authority inside a room comes from ``role``/``status``, never from
    ``Room.created_by``.
    """

    member_id: str
    room_id: str
    user_id: str
    role: MemberRole
    status: MemberStatus
    created_at: int

    @property
    def is_active_admin(self) -> bool:
        return self.role == MemberRole.ADMIN and self.status == MemberStatus.ACTIVE


@dataclass(frozen=True)
class MemberWithUser:
    member: RoomMember
    user: User


@dataclass(frozen=True)
class RoomWithMembership:
    room: Room
    member: RoomMember


@dataclass(frozen=True)
class PendingMember:
    member: RoomMember
    user: Optional[User]
    room: Optional[Room]
