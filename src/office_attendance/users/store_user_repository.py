from __future__ import annotations

from typing import Dict, Iterable, Optional

from ..core.constants import USERS
from ..store.base import DocumentStore
from .model import User
from .repository import UserRepository


def to_user(r: dict) -> User:
    return User(
        user_id=str(r["id"]),
        name=str(r.get("name") or ""),
        email=str(r.get("email") or ""),
        created_at=int(r.get("createdAt") or 0),
    )


class StoreUserRepository(UserRepository):
    def __init__(self, store: DocumentStore):
        self._store = store

    def get_by_id(self, user_id: str) -> Optional[User]:
        r = self._store.get(USERS, user_id)
        return to_user(r) if r else None

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        out: Dict[str, User] = {}
        for user_id in set(user_ids):
            user = self.get_by_id(user_id)
            if user:
                out[user_id] = user
        return out

    def create(self, user: User) -> None:
        self._store.set(
            USERS,
            user.user_id,
            {
                "name": user.name,
                "email": user.email,
                "createdAt": int(user.created_at),
            },
        )
