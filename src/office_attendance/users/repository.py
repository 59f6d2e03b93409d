from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this interface, not on a concrete store.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Lookup several users; missing ids are simply absent from the result."""

        raise NotImplementedError

    def create(self, user: User) -> None:
        raise NotImplementedError
