from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.web import current_user_id, login_required
from ..container import Container
from .model import User


def user_json(user) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.user_id,
        "name": user.name,
        "email": user.email,
        "createdAt": user.created_at,
    }


def register(app: Flask, container: Container) -> None:
    def _start_session(user: User):
        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.name
        return jsonify({"success": True, "user": user_json(user)})

    @app.route("/api/auth/signup", methods=["POST"], endpoint="auth_signup")
    def auth_signup():
        data = request.get_json(silent=True) or {}
        user = container.auth_service.sign_up(
            email=data.get("email", ""),
            password=data.get("password", ""),
            name=data.get("name", ""),
        )
        resp = _start_session(user)
        return resp, 201

    @app.route("/api/auth/signin", methods=["POST"], endpoint="auth_signin")
    def auth_signin():
        data = request.get_json(silent=True) or {}
        user = container.auth_service.sign_in(email=data.get("email", ""), password=data.get("password", ""))
        return _start_session(user)

    @app.route("/api/auth/oauth/<provider>", methods=["POST"], endpoint="auth_oauth")
    def auth_oauth(provider: str):
        user = container.auth_service.sign_in_with_oauth(provider)
        return _start_session(user)

    @app.route("/api/auth/signout", methods=["POST"], endpoint="auth_signout")
    def auth_signout():
        container.auth_service.sign_out()
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        user = container.auth_service.get_user(current_user_id())
        return jsonify({"success": True, "user": user_json(user)})
