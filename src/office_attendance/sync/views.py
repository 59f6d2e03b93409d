"""Live, per-session views over the document store.

A subscription to the caller's memberships decides which rooms they belong
to. That drives one pending-request subscription per room they administer,
and a schedule subscription for the currently selected room. Every dependent
subscription is cancelled before its replacement is opened.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Dict, List, Optional, Set

from ..core.constants import CHANGE_REQUESTS, OFFICE_SCHEDULES, ROOM_MEMBERS
from ..core.enums import MemberStatus, RequestStatus
from ..core.exceptions import AuthorizationError
from ..requests.model import ChangeRequest
from ..requests.store_request_repository import to_request
from ..rooms.model import RoomMember
from ..rooms.store_room_repository import to_member
from ..schedules.model import OfficeSchedule
from ..schedules.store_schedule_repository import to_schedule
from ..store.base import DocumentStore
from ..store.events import CollectionSnapshot, Subscription

logger = logging.getLogger(__name__)


class LiveRoomViews:
    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        *,
        on_change: Optional[Callable[["LiveRoomViews"], None]] = None,
    ):
        self._store = store
        self._user_id = user_id
        self._on_change = on_change

        self._memberships: Dict[str, RoomMember] = {}
        self._membership_sub: Optional[Subscription] = None

        self._request_subs: Dict[str, Subscription] = {}
        self._pending: Dict[str, Dict[str, ChangeRequest]] = {}

        self._selected_room_id: Optional[str] = None
        self._schedule_sub: Optional[Subscription] = None
        self._schedules: Dict[str, OfficeSchedule] = {}

    def start(self) -> "LiveRoomViews":
        if self._membership_sub is None:
            self._membership_sub = self._store.subscribe(ROOM_MEMBERS, self._on_memberships, userId=self._user_id)
        return self

    def close(self) -> None:
        self.select_room(None)
        for room_id in list(self._request_subs):
            self._drop_request_sub(room_id)
        if self._membership_sub is not None:
            self._membership_sub.cancel()
            self._membership_sub = None
        self._memberships = {}

    def __enter__(self) -> "LiveRoomViews":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def memberships(self) -> List[RoomMember]:
        return sorted(self._memberships.values(), key=lambda m: m.created_at)

    @property
    def active_room_ids(self) -> Set[str]:
        return {m.room_id for m in self._memberships.values() if m.status == MemberStatus.ACTIVE}

    @property
    def admin_room_ids(self) -> Set[str]:
        return {m.room_id for m in self._memberships.values() if m.is_active_admin}

    @property
    def selected_room_id(self) -> Optional[str]:
        return self._selected_room_id

    @property
    def schedules(self) -> List[OfficeSchedule]:
        return sorted(self._schedules.values(), key=lambda s: (s.date, s.user_id))

    @property
    def pending_requests(self) -> List[ChangeRequest]:
        items = [r for per_room in self._pending.values() for r in per_room.values()]
        return sorted(items, key=lambda r: r.created_at)

    def select_room(self, room_id: Optional[str]) -> None:
        """Switch the schedule view to another room (or to none)."""
        if room_id is not None and room_id not in self.active_room_ids:
            raise AuthorizationError("You are not an active member of this room")
        if room_id == self._selected_room_id and (room_id is None or self._schedule_sub is not None):
            return

        if self._schedule_sub is not None:
            self._schedule_sub.cancel()
            self._schedule_sub = None
        self._schedules = {}
        self._selected_room_id = room_id

        if room_id is not None:
            self._schedule_sub = self._store.subscribe(OFFICE_SCHEDULES, self._on_schedules, roomId=room_id)
        else:
            self._changed()

    def _on_memberships(self, snapshot: CollectionSnapshot) -> None:
        self._memberships = {doc_id: to_member(r) for doc_id, r in snapshot.records.items()}

        admin_rooms = self.admin_room_ids
        for room_id in set(self._request_subs) - admin_rooms:
            self._drop_request_sub(room_id)
        for room_id in sorted(admin_rooms - set(self._request_subs)):
            self._request_subs[room_id] = self._store.subscribe(
                CHANGE_REQUESTS,
                partial(self._on_requests, room_id),
                roomId=room_id,
                status=RequestStatus.PENDING.value,
            )

        if self._selected_room_id is not None and self._selected_room_id not in self.active_room_ids:
            logger.debug("Lost access to room %s; clearing selection", self._selected_room_id)
            self.select_room(None)
        self._changed()

    def _on_requests(self, room_id: str, snapshot: CollectionSnapshot) -> None:
        self._pending[room_id] = {doc_id: to_request(r) for doc_id, r in snapshot.records.items()}
        self._changed()

    def _on_schedules(self, snapshot: CollectionSnapshot) -> None:
        self._schedules = {doc_id: to_schedule(r) for doc_id, r in snapshot.records.items()}
        self._changed()

    def _drop_request_sub(self, room_id: str) -> None:
        sub = self._request_subs.pop(room_id, None)
        if sub is not None:
            sub.cancel()
        self._pending.pop(room_id, None)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
