from __future__ import annotations

import copy
import threading
import uuid
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Set, Tuple

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

INDEXED_FIELDS = ("roomId", "userId", "inviteCode")


class InMemoryDocumentStore:
    """Thread-safe document store held in process memory.

    Used by tests and by the ``memory`` backend. Secondary indexes cover
    INDEXED_FIELDS; other filters are applied to the indexed candidates.
    """

    def __init__(self, events: Optional[SubscriptionManager] = None):
        self.events = events or SubscriptionManager()
        self._lock = threading.RLock()
        self._data: Dict[str, Dict[str, dict]] = defaultdict(dict)
        self._unique: Dict[str, Dict[str, str]] = defaultdict(dict)
        self._key_of: Dict[str, Dict[str, str]] = defaultdict(dict)
        self._index: Dict[Tuple[str, str], Dict[object, Set[str]]] = defaultdict(lambda: defaultdict(set))

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            record = self._data[collection].get(doc_id)
            return copy.deepcopy(record) if record is not None else None

    def set(self, collection: str, doc_id: str, record: Optional[dict]) -> None:
        with self._lock:
            self._write(collection, doc_id, record)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, object]) -> bool:
        with self._lock:
            current = self._data[collection].get(doc_id)
            if current is None:
                return False
            merged = dict(current)
            merged.update(fields)
            self._write(collection, doc_id, merged)
            return True

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex

    def insert(self, collection: str, doc_id: str, record: dict, *, unique_key: Optional[str] = None) -> None:
        with self._lock:
            if unique_key is not None:
                holder = self._unique[collection].get(unique_key)
                if holder is not None and holder != doc_id:
                    raise DuplicateKeyError(collection, unique_key)
            self._write(collection, doc_id, record)
            if unique_key is not None:
                self._unique[collection][unique_key] = doc_id
                self._key_of[collection][doc_id] = unique_key

    def query(self, collection: str, **where: object) -> List[dict]:
        where = normalize_where(where)
        with self._lock:
            ids = self._candidates(collection, where)
            rows = self._data[collection]
            return [copy.deepcopy(rows[i]) for i in ids if i in rows and matches(rows[i], where)]

    def compare_and_update(
        self,
        collection: str,
        doc_id: str,
        *,
        expected: Mapping[str, object],
        fields: Mapping[str, object],
    ) -> bool:
        with self._lock:
            current = self._data[collection].get(doc_id)
            if not matches(current, normalize_where(expected)):
                return False
            merged = dict(current)
            merged.update(fields)
            self._write(collection, doc_id, merged)
            return True

    def compare_and_delete(self, collection: str, doc_id: str, *, expected: Mapping[str, object]) -> bool:
        with self._lock:
            current = self._data[collection].get(doc_id)
            if not matches(current, normalize_where(expected)):
                return False
            self._write(collection, doc_id, None)
            return True

    def subscribe(self, collection: str, callback: SnapshotCallback, **where: object) -> Subscription:
        with self._lock:
            return self.events.subscribe(
                collection,
                callback,
                where=where,
                load=lambda: {r["id"]: r for r in self.query(collection, **where)},
            )

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._data[collection])

    def _candidates(self, collection: str, where: Mapping[str, object]) -> List[str]:
        indexed = [f for f in INDEXED_FIELDS if f in where]
        if not indexed:
            return list(self._data[collection].keys())
        field = indexed[0]
        return list(self._index[(collection, field)].get(where[field], ()))

    def _write(self, collection: str, doc_id: str, record: Optional[dict]) -> None:
        rows = self._data[collection]
        previous = rows.get(doc_id)
        if record is None and previous is None:
            return

        if previous is not None:
            self._unindex(collection, doc_id, previous)

        if record is None:
            del rows[doc_id]
            key = self._key_of[collection].pop(doc_id, None)
            if key is not None:
                self._unique[collection].pop(key, None)
            change = ChangeType.REMOVED
            stored = None
        else:
            stored = copy.deepcopy(dict(record))
            stored["id"] = doc_id
            rows[doc_id] = stored
            self._reindex(collection, doc_id, stored)
            change = ChangeType.CHANGED if previous is not None else ChangeType.ADDED

        self.events.publish(
            ChangeEvent(
                collection=collection,
                doc_id=doc_id,
                change=change,
                record=copy.deepcopy(stored) if stored is not None else None,
                previous=previous,
            )
        )

    def _reindex(self, collection: str, doc_id: str, record: Mapping[str, object]) -> None:
        for field in INDEXED_FIELDS:
            if field in record:
                self._index[(collection, field)][record[field]].add(doc_id)

    def _unindex(self, collection: str, doc_id: str, record: Mapping[str, object]) -> None:
        for field in INDEXED_FIELDS:
            if field in record:
                self._index[(collection, field)][record[field]].discard(doc_id)
