from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import format_iso_date
from ..common.web import current_user_id, login_required
from ..container import Container
from ..rooms.controller import room_json
from ..users.controller import user_json
from .model import ChangeRequest


def request_json(req: ChangeRequest) -> dict:
    return {
        "id": req.request_id,
        "roomId": req.room_id,
        "userId": req.user_id,
        "kind": req.kind.value,
        "originalDate": format_iso_date(req.original_date) if req.original_date else None,
        "newDate": format_iso_date(req.new_date) if req.new_date else None,
        "reason": req.reason,
        "status": req.status.value,
        "createdAt": req.created_at,
        "resolvedAt": req.resolved_at,
        "resolvedBy": req.resolved_by,
    }


def view_json(view) -> dict:
    return dict(request_json(view.request), user=user_json(view.user), room=room_json(view.room))


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    @app.route("/api/rooms/<room_id>/requests", methods=["POST"], endpoint="requests_create")
    @login_required
    def requests_create(room_id: str):
        data = request.get_json(silent=True) or {}
        req = service.request_change(
            room_id=room_id,
            user_id=current_user_id(),
            original_date=data.get("original_date"),
            new_date=data.get("new_date"),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "request": request_json(req)}), 201

    @app.route("/api/schedules/<schedule_id>/delete-request", methods=["POST"], endpoint="requests_delete_day")
    @login_required
    def requests_delete_day(schedule_id: str):
        data = request.get_json(silent=True) or {}
        req = service.request_deletion(schedule_id=schedule_id, user_id=current_user_id(), reason=data.get("reason"))
        return jsonify({"success": True, "request": request_json(req)}), 201

    @app.route("/api/requests/<request_id>/approve", methods=["POST"], endpoint="requests_approve")
    @login_required
    def requests_approve(request_id: str):
        req = service.approve_change_request(request_id=request_id, resolver_id=current_user_id())
        return jsonify({"success": True, "request": request_json(req)})

    @app.route("/api/requests/<request_id>/reject", methods=["POST"], endpoint="requests_reject")
    @login_required
    def requests_reject(request_id: str):
        req = service.reject_change_request(request_id=request_id, resolver_id=current_user_id())
        return jsonify({"success": True, "request": request_json(req)})

    @app.route("/api/requests/pending", methods=["GET"], endpoint="requests_pending")
    @login_required
    def requests_pending():
        rows = service.list_pending_for_admin(current_user_id())
        return jsonify({"success": True, "requests": [view_json(v) for v in rows]})

    @app.route("/api/requests/mine", methods=["GET"], endpoint="requests_mine")
    @login_required
    def requests_mine():
        rows = service.list_requests_for_user(current_user_id())
        return jsonify({"success": True, "requests": [view_json(v) for v in rows]})
