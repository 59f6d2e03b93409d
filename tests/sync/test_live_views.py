from __future__ import annotations

from datetime import date

import pytest

from office_attendance.core.constants import CHANGE_REQUESTS, OFFICE_SCHEDULES, ROOM_MEMBERS
from office_attendance.core.exceptions import AuthorizationError

MONDAY = date(2026, 3, 2)


def test_memberships_drive_room_sets(container, team):
    with container.live_views("bob") as views:
        assert views.active_room_ids == {team.room.room_id}
        assert views.admin_room_ids == set()

    with container.live_views("alice") as views:
        assert views.admin_room_ids == {team.room.room_id}


def test_admin_sees_pending_requests_live(container, team):
    changes = []
    views = container.live_views("alice", on_change=changes.append).start()
    assert views.pending_requests == []

    req = container.request_service.request_change(room_id=team.room.room_id, user_id="bob", new_date=MONDAY)
    assert [r.request_id for r in views.pending_requests] == [req.request_id]

    container.request_service.approve_change_request(request_id=req.request_id, resolver_id="alice")
    assert views.pending_requests == []
    assert changes

    views.close()


def test_selected_room_schedules_update_live(container, team):
    views = container.live_views("bob").start()
    views.select_room(team.room.room_id)
    assert views.schedules == []

    container.schedule_service.assign_schedules(
        room_id=team.room.room_id, member_user_ids=["alice", "bob"], dates=[MONDAY], caller_id="alice"
    )

    assert [(s.user_id, s.date) for s in views.schedules] == [("alice", MONDAY), ("bob", MONDAY)]
    views.close()


def test_reselecting_a_room_replaces_the_schedule_subscription(container, make_user, team):
    other = container.membership_service.create_room(name="Branch", creator_id="alice")
    member = container.membership_service.join_room_by_code(code=other.invite_code, user_id="bob")
    container.membership_service.approve_membership(member_id=member.member_id, caller_id="alice")

    views = container.live_views("bob").start()
    views.select_room(team.room.room_id)
    views.select_room(other.room_id)
    views.select_room(other.room_id)

    assert container.store.events.count(OFFICE_SCHEDULES) == 1
    assert views.selected_room_id == other.room_id

    container.schedule_service.assign_schedules(
        room_id=team.room.room_id, member_user_ids=["bob"], dates=[MONDAY], caller_id="alice"
    )
    assert views.schedules == []

    views.close()


def test_selecting_a_room_without_access(container, team):
    with container.live_views("carol") as views:
        with pytest.raises(AuthorizationError):
            views.select_room(team.room.room_id)


def test_losing_access_clears_selection(container, team):
    views = container.live_views("carol").start()

    container.membership_service.approve_membership(member_id=team.carol_member.member_id, caller_id="alice")
    views.select_room(team.room.room_id)

    container.store.set(ROOM_MEMBERS, team.carol_member.member_id, None)

    assert views.selected_room_id is None
    assert container.store.events.count(OFFICE_SCHEDULES) == 0
    views.close()


def test_close_cancels_everything(container, team):
    views = container.live_views("alice").start()
    views.select_room(team.room.room_id)

    views.close()

    assert container.store.events.count() == 0
    assert container.store.events.count(CHANGE_REQUESTS) == 0
