from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .core.constants import DEFAULT_UPCOMING_DAYS, INVITE_CODE_LENGTH
from .database.connection import DBConfig, DatabaseConnection
from .requests.service import RequestService
from .requests.store_request_repository import StoreRequestRepository
from .rooms.policy import RoomPolicy
from .rooms.service import MembershipService
from .rooms.store_room_repository import StoreMemberRepository, StoreRoomRepository
from .schedules.service import ScheduleService
from .schedules.store_schedule_repository import StoreScheduleRepository
from .store.base import DocumentStore
from .store.memory_store import InMemoryDocumentStore
from .store.mysql_document_store import MySQLDocumentStore
from .sync.views import LiveRoomViews
from .users.identity import IdentityProvider, LocalIdentityProvider
from .users.service import AuthService
from .users.store_user_repository import StoreUserRepository


@dataclass(frozen=True)
class Container:
    store: DocumentStore

    users_repo: StoreUserRepository
    rooms_repo: StoreRoomRepository
    members_repo: StoreMemberRepository
    schedules_repo: StoreScheduleRepository
    requests_repo: StoreRequestRepository

    identity: IdentityProvider
    policy: RoomPolicy

    auth_service: AuthService
    membership_service: MembershipService
    schedule_service: ScheduleService
    request_service: RequestService

    def live_views(self, user_id: str, *, on_change: Optional[Callable[[LiveRoomViews], None]] = None) -> LiveRoomViews:
        return LiveRoomViews(self.store, user_id, on_change=on_change)


def build_store(*, backend: str = "memory", db_config: Optional[dict] = None) -> DocumentStore:
    backend = (backend or "memory").lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "mysql":
        if db_config is None:
            raise ValueError("DB_CONFIG is required for the mysql backend")
        return MySQLDocumentStore(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
    raise ValueError(f"Unknown store backend: {backend!r}")


def build_container(
    *,
    store: Optional[DocumentStore] = None,
    backend: str = "memory",
    db_config: Optional[dict] = None,
    identity: Optional[IdentityProvider] = None,
    invite_code_length: int = INVITE_CODE_LENGTH,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> Container:
    store = store or build_store(backend=backend, db_config=db_config)

    users_repo = StoreUserRepository(store)
    rooms_repo = StoreRoomRepository(store)
    members_repo = StoreMemberRepository(store)
    schedules_repo = StoreScheduleRepository(store)
    requests_repo = StoreRequestRepository(store)

    identity = identity or LocalIdentityProvider(store)
    policy = RoomPolicy(members_repo)

    auth_service = AuthService(identity, users_repo)
    membership_service = MembershipService(
        rooms_repo,
        members_repo,
        users_repo,
        policy=policy,
        invite_code_length=invite_code_length,
    )
    schedule_service = ScheduleService(
        schedules_repo,
        members_repo,
        rooms_repo,
        users_repo,
        policy=policy,
        upcoming_days=upcoming_days,
    )
    request_service = RequestService(
        requests_repo,
        schedules_repo,
        members_repo,
        rooms_repo,
        users_repo,
        policy=policy,
    )

    return Container(
        store=store,
        users_repo=users_repo,
        rooms_repo=rooms_repo,
        members_repo=members_repo,
        schedules_repo=schedules_repo,
        requests_repo=requests_repo,
        identity=identity,
        policy=policy,
        auth_service=auth_service,
        membership_service=membership_service,
        schedule_service=schedule_service,
        request_service=request_service,
    )
