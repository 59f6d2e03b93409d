from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import MemberStatus
from .model import Room, RoomMember


class RoomRepository(Protocol):
    def get_by_id(self, room_id: str) -> Optional[Room]:
        raise NotImplementedError

    def get_by_invite_code(self, invite_code: str) -> Optional[Room]:
        raise NotImplementedError

    def new_id(self) -> str:
        raise NotImplementedError

    def create(self, room: Room) -> None:
        raise NotImplementedError


class MemberRepository(Protocol):
    def get_by_id(self, member_id: str) -> Optional[RoomMember]:
        raise NotImplementedError

    def get_for_room_and_user(self, *, room_id: str, user_id: str) -> Optional[RoomMember]:
        raise NotImplementedError

    def list_for_room(self, room_id: str, *, status: Optional[MemberStatus] = None) -> Sequence[RoomMember]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, status: Optional[MemberStatus] = None) -> Sequence[RoomMember]:
        raise NotImplementedError

    def new_id(self) -> str:
        raise NotImplementedError

    def create(self, member: RoomMember) -> None:
        """Persist a membership. Raises DuplicateKeyError if (room, user) already has one."""

        raise NotImplementedError

    def activate(self, member_id: str) -> bool:
        """pending -> active. False if the record is gone or no longer pending."""

        raise NotImplementedError

    def delete_pending(self, member_id: str) -> bool:
        raise NotImplementedError
