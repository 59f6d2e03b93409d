from __future__ import annotations

from flask import Flask, Response, jsonify, request

from ..common.web import current_user_id, login_required
from ..container import Container
from ..core.enums import MemberStatus
from ..core.exceptions import ValidationError
from ..users.controller import user_json
from .invite_qr import render_invite_qr


def room_json(room) -> dict | None:
    if room is None:
        return None
    return {
        "id": room.room_id,
        "name": room.name,
        "createdBy": room.created_by,
        "createdAt": room.created_at,
        "inviteCode": room.invite_code,
    }


def member_json(member) -> dict:
    return {
        "id": member.member_id,
        "roomId": member.room_id,
        "userId": member.user_id,
        "role": member.role.value,
        "status": member.status.value,
        "createdAt": member.created_at,
    }


def _status_arg():
    raw = (request.args.get("status") or "").strip()
    if not raw:
        return None
    try:
        return MemberStatus(raw)
    except ValueError:
        raise ValidationError(f"Unknown member status: {raw}")


def register(app: Flask, container: Container) -> None:
    service = container.membership_service

    @app.route("/api/rooms", methods=["POST"], endpoint="rooms_create")
    @login_required
    def rooms_create():
        data = request.get_json(silent=True) or {}
        room = service.create_room(name=data.get("name", ""), creator_id=current_user_id())
        return jsonify({"success": True, "room": room_json(room)}), 201

    @app.route("/api/rooms", methods=["GET"], endpoint="rooms_mine")
    @login_required
    def rooms_mine():
        rows = service.list_rooms_for_user(current_user_id(), status=_status_arg())
        return jsonify(
            {
                "success": True,
                "rooms": [
                    dict(room_json(r.room), memberRole=r.member.role.value, memberStatus=r.member.status.value)
                    for r in rows
                ],
            }
        )

    @app.route("/api/rooms/join", methods=["POST"], endpoint="rooms_join")
    @login_required
    def rooms_join():
        data = request.get_json(silent=True) or {}
        member = service.join_room_by_code(code=data.get("code", ""), user_id=current_user_id())
        return jsonify({"success": True, "member": member_json(member)}), 201

    @app.route("/api/rooms/<room_id>/members", methods=["GET"], endpoint="rooms_members")
    @login_required
    def rooms_members(room_id: str):
        container.policy.require_active_member(room_id=room_id, user_id=current_user_id())
        rows = service.list_members_for_room(room_id, status=_status_arg())
        return jsonify(
            {
                "success": True,
                "members": [dict(member_json(r.member), user=user_json(r.user)) for r in rows],
            }
        )

    @app.route("/api/rooms/<room_id>/invite-qr", methods=["GET"], endpoint="rooms_invite_qr")
    @login_required
    def rooms_invite_qr(room_id: str):
        container.policy.require_active_member(room_id=room_id, user_id=current_user_id())
        room = service.get_room(room_id)
        return Response(render_invite_qr(room.invite_code), mimetype="image/png")

    @app.route("/api/members/pending", methods=["GET"], endpoint="members_pending")
    @login_required
    def members_pending():
        rows = service.list_pending_members_for_admin(current_user_id())
        return jsonify(
            {
                "success": True,
                "members": [
                    dict(member_json(p.member), user=user_json(p.user), room=room_json(p.room)) for p in rows
                ],
            }
        )

    @app.route("/api/members/<member_id>/approve", methods=["POST"], endpoint="members_approve")
    @login_required
    def members_approve(member_id: str):
        service.approve_membership(member_id=member_id, caller_id=current_user_id())
        return jsonify({"success": True, "message": "Member has been approved"})

    @app.route("/api/members/<member_id>/reject", methods=["POST"], endpoint="members_reject")
    @login_required
    def members_reject(member_id: str):
        service.reject_membership(member_id=member_id, caller_id=current_user_id())
        return jsonify({"success": True, "message": "Join request has been rejected"})
