from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import format_iso_date, parse_iso_date
from ..core.constants import CHANGE_REQUESTS
from ..core.enums import RequestStatus
from ..store.base import DocumentStore
from .model import ChangeRequest
from .repository import RequestRepository


def _opt_date(value):
    return parse_iso_date(str(value)) if value else None


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def to_request(r: dict) -> ChangeRequest:
    return ChangeRequest(
        request_id=str(r["id"]),
        room_id=str(r["roomId"]),
        user_id=str(r["userId"]),
        original_date=_opt_date(r.get("originalDate")),
        new_date=_opt_date(r.get("newDate")),
        reason=r.get("reason") or None,
        status=RequestStatus(r["status"]),
        created_at=int(r.get("createdAt") or 0),
        resolved_at=_opt_int(r.get("resolvedAt")),
        resolved_by=r.get("resolvedBy") or None,
    )


class StoreRequestRepository(RequestRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, request_id: str) -> Optional[ChangeRequest]:
        r = self._store.get(CHANGE_REQUESTS, request_id)
        return to_request(r) if r else None

    def new_id(self) -> str:
        return self._store.new_id(CHANGE_REQUESTS)

    def create(self, request: ChangeRequest) -> None:
        self._store.set(
            CHANGE_REQUESTS,
            request.request_id,
            {
                "roomId": request.room_id,
                "userId": request.user_id,
                "originalDate": format_iso_date(request.original_date) if request.original_date else None,
                "newDate": format_iso_date(request.new_date) if request.new_date else None,
                "reason": request.reason,
                "status": request.status.value,
                "createdAt": int(request.created_at),
                "resolvedAt": request.resolved_at,
                "resolvedBy": request.resolved_by,
            },
        )

    def resolve(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        resolved_by: str,
        resolved_at: int,
    ) -> bool:
        return self._store.compare_and_update(
            CHANGE_REQUESTS,
            request_id,
            expected={"status": RequestStatus.PENDING.value},
            fields={
                "status": status.value,
                "resolvedAt": int(resolved_at),
                "resolvedBy": resolved_by,
            },
        )

    def list_for_room(self, room_id: str, *, status: Optional[RequestStatus] = None) -> Sequence[ChangeRequest]:
        where = {"roomId": room_id}
        if status is not None:
            where["status"] = status.value
        requests = [to_request(r) for r in self._store.query(CHANGE_REQUESTS, **where)]
        requests.sort(key=lambda r: r.created_at)
        return requests

    def list_for_user(self, user_id: str) -> Sequence[ChangeRequest]:
        requests = [to_request(r) for r in self._store.query(CHANGE_REQUESTS, userId=user_id)]
        requests.sort(key=lambda r: r.created_at, reverse=True)
        return requests
