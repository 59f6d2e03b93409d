from __future__ import annotations

import json

import mysql.connector
import pytest
from mysql.connector import errorcode

from office_attendance.core.exceptions import TransportError
from office_attendance.store.base import DuplicateKeyError
from office_attendance.store.events import ChangeType
from office_attendance.store.mysql_document_store import MySQLDocumentStore


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self._rows = []

    def execute(self, sql, params=()):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.error is not None:
            raise self._conn.error
        self._rows = self._conn.results.pop(0) if self._conn.results else []

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.results = []
        self.error = None
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        pass


class FakeFactory:
    def __init__(self):
        self.conn = FakeConnection()

    def connect(self, *, with_database=True):
        return self.conn


def _row(record):
    return {"body": json.dumps(record)}


def test_query_pushes_indexed_fields_into_sql_and_filters_the_rest():
    factory = FakeFactory()
    factory.conn.results = [
        [
            _row({"id": "s1", "roomId": "r1", "userId": "u1", "date": "2026-03-02"}),
            _row({"id": "s2", "roomId": "r1", "userId": "u1", "date": "2026-03-03"}),
        ]
    ]
    store = MySQLDocumentStore(factory)

    rows = store.query("officeSchedules", roomId="r1", userId="u1", date="2026-03-03")

    assert [r["id"] for r in rows] == ["s2"]
    sql, params = factory.conn.executed[0]
    assert sql == "SELECT body FROM documents WHERE collection=%s AND room_id=%s AND user_id=%s"
    assert params == ("officeSchedules", "r1", "u1")


def test_insert_maps_duplicate_entry_to_duplicate_key_error():
    factory = FakeFactory()
    factory.conn.error = mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)
    store = MySQLDocumentStore(factory)

    with pytest.raises(DuplicateKeyError):
        store.insert("roomMembers", "m1", {"roomId": "r1", "userId": "u1"}, unique_key="r1|u1")

    assert factory.conn.rollbacks == 1
    assert factory.conn.commits == 0


def test_driver_failures_become_transport_errors():
    factory = FakeFactory()
    factory.conn.error = mysql.connector.OperationalError(msg="Lost connection", errno=2013)
    store = MySQLDocumentStore(factory)

    with pytest.raises(TransportError):
        store.get("rooms", "r1")


def test_compare_and_update_locks_row_and_publishes_after_commit():
    factory = FakeFactory()
    factory.conn.results = [[_row({"id": "c1", "status": "pending"})]]
    store = MySQLDocumentStore(factory)
    events = []
    store.events.subscribe("changeRequests", events.append, where={}, load=dict)

    ok = store.compare_and_update("changeRequests", "c1", expected={"status": "pending"}, fields={"status": "approved"})

    assert ok is True
    assert factory.conn.executed[0][0].endswith("FOR UPDATE")
    assert json.loads(factory.conn.executed[1][1][0])["status"] == "approved"
    assert factory.conn.commits == 1
    assert events[-1].event.change == ChangeType.CHANGED


def test_compare_and_update_skips_write_on_mismatch():
    factory = FakeFactory()
    factory.conn.results = [[_row({"id": "c1", "status": "approved"})]]
    store = MySQLDocumentStore(factory)

    ok = store.compare_and_update("changeRequests", "c1", expected={"status": "pending"}, fields={"status": "rejected"})

    assert ok is False
    assert len(factory.conn.executed) == 1
