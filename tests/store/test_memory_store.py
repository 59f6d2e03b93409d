from __future__ import annotations

import pytest

from office_attendance.core.exceptions import ConflictError
from office_attendance.store.base import DuplicateKeyError
from office_attendance.store.events import ChangeEvent, ChangeType, SubscriptionManager
from office_attendance.store.memory_store import InMemoryDocumentStore


def test_set_get_and_delete_with_none():
    store = InMemoryDocumentStore()
    store.set("rooms", "r1", {"name": "HQ"})

    assert store.get("rooms", "r1") == {"id": "r1", "name": "HQ"}

    store.set("rooms", "r1", None)
    assert store.get("rooms", "r1") is None


def test_get_returns_a_copy():
    store = InMemoryDocumentStore()
    store.set("rooms", "r1", {"name": "HQ"})

    store.get("rooms", "r1")["name"] = "changed"

    assert store.get("rooms", "r1")["name"] == "HQ"


def test_update_merges_and_reports_missing():
    store = InMemoryDocumentStore()
    store.set("roomMembers", "m1", {"roomId": "r1", "userId": "u1", "status": "pending"})

    assert store.update("roomMembers", "m1", {"status": "active"}) is True
    assert store.get("roomMembers", "m1")["status"] == "active"
    assert store.get("roomMembers", "m1")["userId"] == "u1"
    assert store.update("roomMembers", "missing", {"status": "active"}) is False


def test_query_uses_indexed_and_plain_fields():
    store = InMemoryDocumentStore()
    store.set("officeSchedules", "s1", {"roomId": "r1", "userId": "u1", "date": "2026-03-02"})
    store.set("officeSchedules", "s2", {"roomId": "r1", "userId": "u2", "date": "2026-03-02"})
    store.set("officeSchedules", "s3", {"roomId": "r2", "userId": "u1", "date": "2026-03-03"})

    assert {r["id"] for r in store.query("officeSchedules", roomId="r1")} == {"s1", "s2"}
    assert [r["id"] for r in store.query("officeSchedules", roomId="r1", userId="u2")] == ["s2"]
    assert [r["id"] for r in store.query("officeSchedules", date="2026-03-03")] == ["s3"]


def test_query_index_follows_updates():
    store = InMemoryDocumentStore()
    store.set("roomMembers", "m1", {"roomId": "r1", "userId": "u1"})
    store.set("roomMembers", "m1", {"roomId": "r2", "userId": "u1"})

    assert store.query("roomMembers", roomId="r1") == []
    assert [r["id"] for r in store.query("roomMembers", roomId="r2")] == ["m1"]


def test_insert_rejects_duplicate_unique_key_until_released():
    store = InMemoryDocumentStore()
    store.insert("roomMembers", "m1", {"roomId": "r1", "userId": "u1"}, unique_key="r1|u1")

    with pytest.raises(DuplicateKeyError) as exc:
        store.insert("roomMembers", "m2", {"roomId": "r1", "userId": "u1"}, unique_key="r1|u1")
    assert isinstance(exc.value, ConflictError)

    store.set("roomMembers", "m1", None)
    store.insert("roomMembers", "m2", {"roomId": "r1", "userId": "u1"}, unique_key="r1|u1")
    assert store.count("roomMembers") == 1


def test_compare_and_update_only_applies_on_match():
    store = InMemoryDocumentStore()
    store.set("changeRequests", "c1", {"status": "pending"})

    assert store.compare_and_update("changeRequests", "c1", expected={"status": "pending"}, fields={"status": "approved"})
    assert not store.compare_and_update("changeRequests", "c1", expected={"status": "pending"}, fields={"status": "rejected"})
    assert store.get("changeRequests", "c1")["status"] == "approved"


def test_compare_and_delete():
    store = InMemoryDocumentStore()
    store.set("roomMembers", "m1", {"status": "active"})

    assert not store.compare_and_delete("roomMembers", "m1", expected={"status": "pending"})
    assert store.compare_and_delete("roomMembers", "m1", expected={"status": "active"})
    assert not store.compare_and_delete("roomMembers", "m1", expected={})


def test_subscribe_delivers_initial_snapshot_then_filtered_changes():
    store = InMemoryDocumentStore()
    store.set("officeSchedules", "s1", {"roomId": "r1", "userId": "u1"})
    store.set("officeSchedules", "s2", {"roomId": "r2", "userId": "u1"})

    snapshots = []
    sub = store.subscribe("officeSchedules", snapshots.append, roomId="r1")

    assert len(snapshots) == 1
    assert snapshots[0].event is None
    assert set(snapshots[0].records) == {"s1"}

    store.set("officeSchedules", "s3", {"roomId": "r2", "userId": "u2"})
    assert len(snapshots) == 1

    store.set("officeSchedules", "s4", {"roomId": "r1", "userId": "u2"})
    assert set(snapshots[-1].records) == {"s1", "s4"}
    assert snapshots[-1].event.change == ChangeType.ADDED

    store.set("officeSchedules", "s1", None)
    assert set(snapshots[-1].records) == {"s4"}
    assert snapshots[-1].event.change == ChangeType.REMOVED

    sub.cancel()


def test_record_moving_out_of_filter_is_removed_from_view():
    store = InMemoryDocumentStore()
    store.set("roomMembers", "m1", {"roomId": "r1", "status": "pending"})
    snapshots = []
    store.subscribe("roomMembers", snapshots.append, roomId="r1", status="pending")

    store.update("roomMembers", "m1", {"status": "active"})

    assert snapshots[-1].records == {}
    assert snapshots[-1].event.change == ChangeType.CHANGED


def test_cancel_stops_delivery_and_is_idempotent():
    store = InMemoryDocumentStore()
    snapshots = []
    sub = store.subscribe("rooms", snapshots.append)

    sub.cancel()
    sub.cancel()
    store.set("rooms", "r1", {"name": "HQ"})

    assert len(snapshots) == 1
    assert not sub.active
    assert store.events.count("rooms") == 0


def test_cancel_from_inside_callback():
    store = InMemoryDocumentStore()
    calls = []

    def once(snapshot):
        calls.append(snapshot)
        if snapshot.event is not None:
            holder["sub"].cancel()

    holder = {}
    holder["sub"] = store.subscribe("rooms", once)
    store.set("rooms", "r1", {"name": "A"})
    store.set("rooms", "r2", {"name": "B"})

    assert len(calls) == 2


def test_failing_listener_does_not_block_writer_or_others():
    store = InMemoryDocumentStore()
    seen = []

    def broken(snapshot):
        if snapshot.event is not None:
            raise RuntimeError("boom")

    store.subscribe("rooms", broken)
    store.subscribe("rooms", seen.append)

    store.set("rooms", "r1", {"name": "HQ"})

    assert store.get("rooms", "r1") is not None
    assert set(seen[-1].records) == {"r1"}


def test_subscription_as_context_manager():
    store = InMemoryDocumentStore()
    with store.subscribe("rooms", lambda s: None) as sub:
        assert sub.active
    assert not sub.active


def test_removal_during_initial_load_wins_over_stale_row():
    events = SubscriptionManager()
    snapshots = []

    def stale_load():
        # the row is deleted after the load read it, but before it returned
        events.publish(ChangeEvent("rooms", "r1", ChangeType.REMOVED, None, previous={"id": "r1"}))
        return {"r1": {"id": "r1"}, "r2": {"id": "r2"}}

    events.subscribe("rooms", snapshots.append, where={}, load=stale_load)

    assert len(snapshots) == 1
    assert snapshots[0].event is None
    assert set(snapshots[0].records) == {"r2"}


def test_changes_during_initial_load_are_folded_into_first_snapshot():
    events = SubscriptionManager()
    snapshots = []

    def load():
        events.publish(ChangeEvent("rooms", "r3", ChangeType.ADDED, {"id": "r3", "name": "New"}))
        events.publish(ChangeEvent("rooms", "r1", ChangeType.CHANGED, {"id": "r1", "name": "B"}, {"id": "r1", "name": "A"}))
        return {"r1": {"id": "r1", "name": "A"}}

    events.subscribe("rooms", snapshots.append, where={}, load=load)
    events.publish(ChangeEvent("rooms", "r3", ChangeType.REMOVED, None, {"id": "r3", "name": "New"}))

    assert [s.event is None for s in snapshots] == [True, False]
    assert snapshots[0].records == {"r1": {"id": "r1", "name": "B"}, "r3": {"id": "r3", "name": "New"}}
    assert set(snapshots[1].records) == {"r1"}


def test_failed_initial_load_leaves_no_subscription():
    events = SubscriptionManager()

    def broken_load():
        raise RuntimeError("store unavailable")

    with pytest.raises(RuntimeError):
        events.subscribe("rooms", lambda s: None, where={}, load=broken_load)

    assert events.count("rooms") == 0
