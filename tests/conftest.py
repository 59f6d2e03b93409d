from __future__ import annotations

from types import SimpleNamespace

import pytest

from office_attendance.container import build_container
from office_attendance.store.memory_store import InMemoryDocumentStore
from office_attendance.users.model import User


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def container(store):
    return build_container(store=store)


@pytest.fixture
def make_user(container):
    def _make(user_id: str, name: str | None = None) -> User:
        user = User(user_id=user_id, name=name or user_id.title(), email=f"{user_id}@example.com", created_at=1)
        container.users_repo.create(user)
        return user

    return _make


@pytest.fixture
def team(container, make_user):
    """Room "HQ": alice is admin, bob an active member, carol still pending."""
    for user_id in ("alice", "bob", "carol"):
        make_user(user_id)

    membership = container.membership_service
    room = membership.create_room(name="HQ", creator_id="alice")

    bob = membership.join_room_by_code(code=room.invite_code, user_id="bob")
    membership.approve_membership(member_id=bob.member_id, caller_id="alice")
    carol = membership.join_room_by_code(code=room.invite_code, user_id="carol")

    return SimpleNamespace(room=room, bob_member=bob, carol_member=carol)
