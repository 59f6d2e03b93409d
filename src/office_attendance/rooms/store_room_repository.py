from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import ROOM_MEMBERS, ROOMS
from ..core.enums import MemberRole, MemberStatus
from ..store.base import DocumentStore
from .model import Room, RoomMember
from .repository import MemberRepository, RoomRepository


def to_room(r: dict) -> Room:
    return Room(
        room_id=str(r["id"]),
        name=str(r.get("name") or ""),
        created_by=str(r.get("createdBy") or ""),
        created_at=int(r.get("createdAt") or 0),
        invite_code=str(r.get("inviteCode") or ""),
    )


def to_member(r: dict) -> RoomMember:
    return RoomMember(
        member_id=str(r["id"]),
        room_id=str(r["roomId"]),
        user_id=str(r["userId"]),
        role=MemberRole(r["role"]),
        status=MemberStatus(r["status"]),
        created_at=int(r.get("createdAt") or 0),
    )


def membership_key(room_id: str, user_id: str) -> str:
    return f"{room_id}|{user_id}"


class StoreRoomRepository(RoomRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, room_id: str) -> Optional[Room]:
        r = self._store.get(ROOMS, room_id)
        return to_room(r) if r else None

    def get_by_invite_code(self, invite_code: str) -> Optional[Room]:
        rows = self._store.query(ROOMS, inviteCode=invite_code)
        if not rows:
            return None
        # Codes are not checked for collisions; the oldest room wins.
        rows.sort(key=lambda r: int(r.get("createdAt") or 0))
        return to_room(rows[0])

    def new_id(self) -> str:
        return self._store.new_id(ROOMS)

    def create(self, room: Room) -> None:
        self._store.set(
            ROOMS,
            room.room_id,
            {
                "name": room.name,
                "createdBy": room.created_by,
                "createdAt": int(room.created_at),
                "inviteCode": room.invite_code,
            },
        )


class StoreMemberRepository(MemberRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, member_id: str) -> Optional[RoomMember]:
        r = self._store.get(ROOM_MEMBERS, member_id)
        return to_member(r) if r else None

    def get_for_room_and_user(self, *, room_id: str, user_id: str) -> Optional[RoomMember]:
        rows = self._store.query(ROOM_MEMBERS, roomId=room_id, userId=user_id)
        return to_member(rows[0]) if rows else None

    def list_for_room(self, room_id: str, *, status: Optional[MemberStatus] = None) -> Sequence[RoomMember]:
        where = {"roomId": room_id}
        if status is not None:
            where["status"] = status.value
        members = [to_member(r) for r in self._store.query(ROOM_MEMBERS, **where)]
        members.sort(key=lambda m: m.created_at)
        return members

    def list_for_user(self, user_id: str, *, status: Optional[MemberStatus] = None) -> Sequence[RoomMember]:
        where = {"userId": user_id}
        if status is not None:
            where["status"] = status.value
        members = [to_member(r) for r in self._store.query(ROOM_MEMBERS, **where)]
        members.sort(key=lambda m: m.created_at)
        return members

    def new_id(self) -> str:
        return self._store.new_id(ROOM_MEMBERS)

    def create(self, member: RoomMember) -> None:
        self._store.insert(
            ROOM_MEMBERS,
            member.member_id,
            {
                "roomId": member.room_id,
                "userId": member.user_id,
                "role": member.role.value,
                "status": member.status.value,
                "createdAt": int(member.created_at),
            },
            unique_key=membership_key(member.room_id, member.user_id),
        )

    def activate(self, member_id: str) -> bool:
        return self._store.compare_and_update(
            ROOM_MEMBERS,
            member_id,
            expected={"status": MemberStatus.PENDING.value},
            fields={"status": MemberStatus.ACTIVE.value},
        )

    def delete_pending(self, member_id: str) -> bool:
        return self._store.compare_and_delete(
            ROOM_MEMBERS,
            member_id,
            expected={"status": MemberStatus.PENDING.value},
        )
