"""Live-update plumbing for the document store.

Every write publishes a typed ChangeEvent for its collection. Subscribers hold
a Subscription handle; each handle keeps its own materialized view of the
records matching its filter and calls back with a full CollectionSnapshot,
first on subscribe and then after every change that touches the view.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    doc_id: str
    change: ChangeType
    record: Optional[dict]
    previous: Optional[dict] = None


@dataclass(frozen=True)
class CollectionSnapshot:
    collection: str
    records: Mapping[str, dict] = field(default_factory=dict)
    # None on the initial delivery.
    event: Optional[ChangeEvent] = None

    def values(self) -> List[dict]:
        return list(self.records.values())

    def __len__(self) -> int:
        return len(self.records)


SnapshotCallback = Callable[[CollectionSnapshot], None]


def normalize_where(where: Mapping[str, object]) -> Dict[str, object]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in where.items()}


def matches(record: Optional[Mapping[str, object]], where: Mapping[str, object]) -> bool:
    if record is None:
        return False
    return all(record.get(k) == v for k, v in where.items())


class Subscription:
    """Cancellation handle for one live subscription.

    Events that arrive while the initial load runs are buffered and replayed
    over the loaded records, so the first snapshot never shows a record that
    was removed during the load.
    """

    def __init__(
        self,
        manager: "SubscriptionManager",
        collection: str,
        callback: SnapshotCallback,
        where: Mapping[str, object],
    ):
        self._manager = manager
        self._collection = collection
        self._callback = callback
        self._where = normalize_where(where)
        self._records: Dict[str, dict] = {}
        self._lock = threading.RLock()
        self._buffered: Optional[List[ChangeEvent]] = []
        self._active = True

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def where(self) -> Mapping[str, object]:
        return dict(self._where)

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop deliveries. Safe to call more than once, including from the callback."""
        if not self._active:
            return
        self._active = False
        self._manager._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()

    def _prime(self, records: Mapping[str, dict]) -> None:
        with self._lock:
            for doc_id, record in records.items():
                if matches(record, self._where):
                    self._records[doc_id] = record
            buffered, self._buffered = self._buffered or [], None
            for event in buffered:
                self._apply(event)
            self._emit(None)

    def _deliver(self, event: ChangeEvent) -> None:
        with self._lock:
            if not self._active:
                return
            if self._buffered is not None:
                self._buffered.append(event)
                return
            if self._apply(event):
                self._emit(event)

    def _apply(self, event: ChangeEvent) -> bool:
        was_visible = event.doc_id in self._records
        is_visible = matches(event.record, self._where)
        if not was_visible and not is_visible:
            return False
        if is_visible:
            self._records[event.doc_id] = event.record
        else:
            self._records.pop(event.doc_id, None)
        return True

    def _emit(self, event: Optional[ChangeEvent]) -> None:
        if not self._active:
            return
        self._callback(CollectionSnapshot(self._collection, dict(self._records), event))


class SubscriptionManager:
    """In-process publish/subscribe hub keyed by collection name."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subs: Dict[str, List[Subscription]] = {}

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        where: Mapping[str, object],
        load: Callable[[], Mapping[str, dict]],
    ) -> Subscription:
        """Register first, then load and deliver the initial snapshot.

        Events published during the load are held back and replayed on top of
        the loaded records before the initial snapshot goes out.
        """
        sub = Subscription(self, collection, callback, where)
        with self._lock:
            self._subs.setdefault(collection, []).append(sub)
        try:
            records = load()
        except Exception:
            sub.cancel()
            raise
        sub._prime(records)
        logger.debug("Subscribed to %s where %s", collection, sub.where)
        return sub

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subs = list(self._subs.get(event.collection, ()))
        for sub in subs:
            try:
                sub._deliver(event)
            except Exception:
                # One broken listener must not block the writer or other listeners.
                logger.exception("Subscriber for %s failed on %s", event.collection, event.doc_id)

    def count(self, collection: Optional[str] = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._subs.get(collection, ()))
            return sum(len(v) for v in self._subs.values())

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.collection)
            if subs and sub in subs:
                subs.remove(sub)
            if subs == []:
                self._subs.pop(sub.collection, None)
        logger.debug("Unsubscribed from %s", sub.collection)
