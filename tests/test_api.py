from __future__ import annotations

import pytest

from office_attendance.container import build_container
from office_attendance.main import create_app


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=build_container())


def _sign_up(client, name):
    resp = client.post(
        "/api/auth/signup",
        json={"email": f"{name.lower()}@example.com", "password": "secret1", "name": name},
    )
    assert resp.status_code == 201
    return resp.get_json()["user"]


def test_requires_sign_in(app):
    resp = app.test_client().get("/api/rooms")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_sign_in_errors_map_to_status_codes(app):
    client = app.test_client()
    _sign_up(client, "Ann")

    assert client.post("/api/auth/signin", json={"email": "ann@example.com", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/signup", json={"email": "ann@example.com", "password": "secret1", "name": "A"}).status_code == 409
    assert client.post("/api/auth/signup", json={"email": "bad", "password": "secret1", "name": "A"}).status_code == 400
    assert client.post("/api/auth/oauth/google").status_code == 401


def test_room_membership_and_schedule_flow(app):
    admin = app.test_client()
    member = app.test_client()
    _sign_up(admin, "Ann")
    bob = _sign_up(member, "Bob")

    room = admin.post("/api/rooms", json={"name": "HQ"}).get_json()["room"]
    assert member.post("/api/rooms/join", json={"code": "ZZZZZZ"}).status_code == 404
    joined = member.post("/api/rooms/join", json={"code": room["inviteCode"]})
    assert joined.status_code == 201
    member_id = joined.get_json()["member"]["id"]

    assert member.get(f"/api/rooms/{room['id']}/members").status_code == 403

    pending = admin.get("/api/members/pending").get_json()["members"]
    assert [p["user"]["name"] for p in pending] == ["Bob"]
    assert member.post(f"/api/members/{member_id}/approve").status_code == 403
    assert admin.post(f"/api/members/{member_id}/approve").status_code == 200

    assigned = admin.post(
        f"/api/rooms/{room['id']}/schedules",
        json={"user_ids": [bob["id"]], "dates": ["2026-03-02", "2026-03-03"]},
    )
    assert assigned.get_json()["created"] == 2

    schedules = member.get(f"/api/rooms/{room['id']}/schedules").get_json()["schedules"]
    assert [s["date"] for s in schedules] == ["2026-03-02", "2026-03-03"]
    assert member.delete(f"/api/schedules/{schedules[0]['id']}").status_code == 403

    req = member.post(f"/api/schedules/{schedules[0]['id']}/delete-request", json={}).get_json()["request"]
    assert req["kind"] == "delete"

    assert member.post(f"/api/requests/{req['id']}/approve").status_code == 403
    approved = admin.post(f"/api/requests/{req['id']}/approve")
    assert approved.get_json()["request"]["status"] == "approved"
    assert admin.post(f"/api/requests/{req['id']}/reject").status_code == 409

    remaining = member.get(f"/api/rooms/{room['id']}/schedules").get_json()["schedules"]
    assert [s["date"] for s in remaining] == ["2026-03-03"]


def test_invite_qr_is_png(app):
    client = app.test_client()
    _sign_up(client, "Ann")
    room = client.post("/api/rooms", json={"name": "HQ"}).get_json()["room"]

    resp = client.get(f"/api/rooms/{room['id']}/invite-qr")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")


def test_upcoming_rejects_bad_days(app):
    client = app.test_client()
    _sign_up(client, "Ann")

    assert client.get("/api/schedules/upcoming?days=abc").status_code == 400
    assert client.get("/api/schedules/upcoming?days=3").get_json()["schedules"] == []


def test_assign_requires_list_payloads(app):
    client = app.test_client()
    ann = _sign_up(client, "Ann")
    room = client.post("/api/rooms", json={"name": "HQ"}).get_json()["room"]
    url = f"/api/rooms/{room['id']}/schedules"

    assert client.post(url, json={"user_ids": ann["id"], "dates": ["2026-03-02"]}).status_code == 400
    assert client.post(url, json={"user_ids": [ann["id"]], "dates": "2026-03-02"}).status_code == 400
    assert client.get(url).get_json()["schedules"] == []
    assert client.post(url, json={"user_ids": [ann["id"]], "dates": ["2026-03-02"]}).get_json()["created"] == 1
