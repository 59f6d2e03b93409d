from __future__ import annotations

import json
import logging
import uuid
from contextlib import contextmanager
from typing import Dict, List, Mapping, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import TransportError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .base import DuplicateKeyError
from .events import (
    ChangeEvent,
    ChangeType,
    SnapshotCallback,
    Subscription,
    SubscriptionManager,
    matches,
    normalize_where,
)

logger = logging.getLogger(__name__)

# Record field -> generated, indexed column on `documents`.
INDEXED_COLUMNS = {
    "roomId": "room_id",
    "userId": "user_id",
    "inviteCode": "invite_code",
}


def _load_body(raw) -> dict:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, dict):
        return raw
    return json.loads(raw)


class MySQLDocumentStore:
    """Document store persisted in the single ``documents`` table (see schema.sql).

    Change events are published in-process after each committed write.
    """

    def __init__(self, conn_factory: DatabaseConnection, events: Optional[SubscriptionManager] = None):
        self._conn_factory = conn_factory
        self.events = events or SubscriptionManager()

    @contextmanager
    def _guard(self, action: str, collection: str, unique_key: Optional[str] = None):
        try:
            yield
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY and unique_key is not None:
                raise DuplicateKeyError(collection, unique_key) from e
            raise TransportError(f"{action} on {collection} failed: {e}") from e
        except mysql.connector.Error as e:
            raise TransportError(f"{action} on {collection} failed: {e}") from e

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._guard("get", collection):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT body FROM documents WHERE collection=%s AND doc_id=%s",
                    (collection, doc_id),
                )
                r = fetchone(cur)
        return _load_body(r["body"]) if r else None

    def set(self, collection: str, doc_id: str, record: Optional[dict]) -> None:
        with self._guard("set", collection):
            with db_cursor(self._conn_factory) as (_, cur):
                previous = self._lock_row(cur, collection, doc_id)
                if record is None:
                    if previous is None:
                        return
                    cur.execute(
                        "DELETE FROM documents WHERE collection=%s AND doc_id=%s",
                        (collection, doc_id),
                    )
                    stored = None
                else:
                    stored = dict(record, id=doc_id)
                    cur.execute(
                        """
                        INSERT INTO documents(collection, doc_id, body)
                        VALUES(%s,%s,%s)
                        ON DUPLICATE KEY UPDATE body=VALUES(body)
                        """,
                        (collection, doc_id, json.dumps(stored)),
                    )
        self._publish(collection, doc_id, stored, previous)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, object]) -> bool:
        return self._conditional_write(collection, doc_id, expected={}, fields=fields)

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    def insert(self, collection: str, doc_id: str, record: dict, *, unique_key: Optional[str] = None) -> None:
        stored = dict(record, id=doc_id)
        with self._guard("insert", collection, unique_key):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO documents(collection, doc_id, unique_key, body) VALUES(%s,%s,%s,%s)",
                    (collection, doc_id, unique_key, json.dumps(stored)),
                )
        self._publish(collection, doc_id, stored, None)

    def query(self, collection: str, **where: object) -> List[dict]:
        where = normalize_where(where)
        clauses = ["collection=%s"]
        params: list[object] = [collection]
        for field, column in INDEXED_COLUMNS.items():
            if field in where:
                clauses.append(f"{column}=%s")
                params.append(where[field])

        with self._guard("query", collection):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"SELECT body FROM documents WHERE {' AND '.join(clauses)}",
                    tuple(params),
                )
                rows = fetchall(cur)

        out = [_load_body(r["body"]) for r in rows]
        return [r for r in out if matches(r, where)]

    def compare_and_update(
        self,
        collection: str,
        doc_id: str,
        *,
        expected: Mapping[str, object],
        fields: Mapping[str, object],
    ) -> bool:
        return self._conditional_write(collection, doc_id, expected=expected, fields=fields)

    def compare_and_delete(self, collection: str, doc_id: str, *, expected: Mapping[str, object]) -> bool:
        expected = normalize_where(expected)
        with self._guard("delete", collection):
            with db_cursor(self._conn_factory) as (_, cur):
                previous = self._lock_row(cur, collection, doc_id)
                if not matches(previous, expected):
                    return False
                cur.execute(
                    "DELETE FROM documents WHERE collection=%s AND doc_id=%s",
                    (collection, doc_id),
                )
        self._publish(collection, doc_id, None, previous)
        return True

    def subscribe(self, collection: str, callback: SnapshotCallback, **where: object) -> Subscription:
        return self.events.subscribe(
            collection,
            callback,
            where=where,
            load=lambda: {r["id"]: r for r in self.query(collection, **where)},
        )

    def _conditional_write(
        self,
        collection: str,
        doc_id: str,
        *,
        expected: Mapping[str, object],
        fields: Mapping[str, object],
    ) -> bool:
        expected = normalize_where(expected)
        with self._guard("update", collection):
            with db_cursor(self._conn_factory) as (_, cur):
                previous = self._lock_row(cur, collection, doc_id)
                if not matches(previous, expected):
                    return False
                stored = dict(previous)
                stored.update(fields)
                cur.execute(
                    "UPDATE documents SET body=%s WHERE collection=%s AND doc_id=%s",
                    (json.dumps(stored), collection, doc_id),
                )
        self._publish(collection, doc_id, stored, previous)
        return True

    @staticmethod
    def _lock_row(cur, collection: str, doc_id: str) -> Optional[Dict[str, object]]:
        cur.execute(
            "SELECT body FROM documents WHERE collection=%s AND doc_id=%s FOR UPDATE",
            (collection, doc_id),
        )
        r = fetchone(cur)
        return _load_body(r["body"]) if r else None

    def _publish(self, collection: str, doc_id: str, stored: Optional[dict], previous: Optional[dict]) -> None:
        if stored is None:
            change = ChangeType.REMOVED
        elif previous is None:
            change = ChangeType.ADDED
        else:
            change = ChangeType.CHANGED
        logger.debug("%s %s/%s", change.value, collection, doc_id)
        self.events.publish(ChangeEvent(collection, doc_id, change, stored, previous))
