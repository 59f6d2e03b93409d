from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_iso_date
from ..common.web import current_user_id, login_required
from ..container import Container
from ..core.exceptions import ValidationError
from ..rooms.controller import room_json
from ..users.controller import user_json


def schedule_json(view) -> dict:
    s = view.schedule
    out = {
        "id": s.schedule_id,
        "roomId": s.room_id,
        "userId": s.user_id,
        "date": format_iso_date(s.date),
        "status": s.status.value,
        "createdAt": s.created_at,
        "user": user_json(view.user),
    }
    if view.room is not None:
        out["room"] = room_json(view.room)
    return out


def register(app: Flask, container: Container) -> None:
    service = container.schedule_service

    @app.route("/api/rooms/<room_id>/schedules", methods=["GET"], endpoint="schedules_room")
    @login_required
    def schedules_room(room_id: str):
        container.policy.require_active_member(room_id=room_id, user_id=current_user_id())
        rows = service.list_schedules_for_room(room_id)
        return jsonify({"success": True, "schedules": [schedule_json(v) for v in rows]})

    @app.route("/api/rooms/<room_id>/schedules", methods=["POST"], endpoint="schedules_assign")
    @login_required
    def schedules_assign(room_id: str):
        data = request.get_json(silent=True) or {}
        user_ids = data.get("user_ids") or []
        dates = data.get("dates") or []
        if not isinstance(user_ids, list) or not isinstance(dates, list):
            raise ValidationError("user_ids and dates must be lists")
        created = service.assign_schedules(
            room_id=room_id,
            member_user_ids=user_ids,
            dates=dates,
            caller_id=current_user_id(),
        )
        return jsonify({"success": True, "created": created}), 201

    @app.route("/api/schedules/<schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @login_required
    def schedules_delete(schedule_id: str):
        service.delete_schedule(schedule_id=schedule_id, caller_id=current_user_id())
        return jsonify({"success": True, "message": "Office day has been removed"})

    @app.route("/api/schedules/upcoming", methods=["GET"], endpoint="schedules_upcoming")
    @login_required
    def schedules_upcoming():
        days_s = request.args.get("days")
        if days_s is not None and not days_s.isdigit():
            raise ValidationError("days must be a non-negative integer")
        rows = service.list_upcoming_for_user(
            current_user_id(),
            int(days_s) if days_s is not None else None,
            include_team=request.args.get("team") in {"1", "true"},
        )
        return jsonify({"success": True, "schedules": [schedule_json(v) for v in rows]})
