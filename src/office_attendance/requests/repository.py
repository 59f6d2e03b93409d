from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ChangeRequest


class RequestRepository(Protocol):
    def get_by_id(self, request_id: str) -> Optional[ChangeRequest]:
        raise NotImplementedError

    def new_id(self) -> str:
        raise NotImplementedError

    def create(self, request: ChangeRequest) -> None:
        raise NotImplementedError

    def resolve(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        resolved_by: str,
        resolved_at: int,
    ) -> bool:
        """Move a pending request to a terminal status.

        Returns False if the request is missing or no longer pending.
        """

        raise NotImplementedError

    def list_for_room(self, room_id: str, *, status: Optional[RequestStatus] = None) -> Sequence[ChangeRequest]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[ChangeRequest]:
        raise NotImplementedError
