from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Local profile of an authenticated person.

    ``user_id`` is the identity provider's subject id.
    """

    user_id: str
    name: str
    email: str
    created_at: int
