"""Create a demo room: an admin, one approved member and this week's office days."""

from __future__ import annotations

import importlib
import sys
from datetime import timedelta
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from office_attendance.common.datetime_utils import today
from office_attendance.config import get_settings_module
from office_attendance.container import build_container
from office_attendance.core.exceptions import AuthenticationError

DEMO_PASSWORD = "123456"


def _demo_user(auth, *, email: str, name: str):
    try:
        return auth.sign_in(email=email, password=DEMO_PASSWORD)
    except AuthenticationError:
        return auth.sign_up(email=email, password=DEMO_PASSWORD, name=name)


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        backend=str(getattr(settings, "STORE_BACKEND", "mysql")),
        db_config=dict(settings.DB_CONFIG),
    )

    admin = _demo_user(container.auth_service, email="admin@example.com", name="Demo Admin")
    member = _demo_user(container.auth_service, email="member@example.com", name="Demo Member")

    membership = container.membership_service
    room = membership.create_room(name="Demo Office", creator_id=admin.user_id)
    joined = membership.join_room_by_code(code=room.invite_code, user_id=member.user_id)
    membership.approve_membership(member_id=joined.member_id, caller_id=admin.user_id)

    start = today()
    created = container.schedule_service.assign_schedules(
        room_id=room.room_id,
        member_user_ids=[admin.user_id, member.user_id],
        dates=[start + timedelta(days=i) for i in range(5)],
        caller_id=admin.user_id,
    )

    print(f"OK: Seeded room {room.name!r} (invite code {room.invite_code}, {created} office days)")


if __name__ == "__main__":
    main()
