from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ChangeKind, RequestStatus
from ..rooms.model import Room
from ..users.model import User


@dataclass(frozen=True)
class ChangeRequest:
    """Proposed schedule mutation awaiting an admin decision.

    The shape follows from the dates: both set is a move, only ``new_date``
    an add, only ``original_date`` a delete.
    """

    request_id: str
    room_id: str
    user_id: str
    original_date: Optional[date]
    new_date: Optional[date]
    status: RequestStatus
    created_at: int
    reason: Optional[str] = None
    resolved_at: Optional[int] = None
    resolved_by: Optional[str] = None

    @property
    def kind(self) -> ChangeKind:
        if self.original_date and self.new_date:
            return ChangeKind.MOVE
        if self.new_date:
            return ChangeKind.ADD
        return ChangeKind.DELETE

    @property
    def is_resolved(self) -> bool:
        return self.status != RequestStatus.PENDING


@dataclass(frozen=True)
class ChangeRequestView:
    request: ChangeRequest
    user: Optional[User]
    room: Optional[Room]
