from __future__ import annotations

from typing import List, Mapping, Optional, Protocol

from ..core.exceptions import ConflictError
from .events import SnapshotCallback, Subscription, SubscriptionManager


class DuplicateKeyError(ConflictError):
    """Raised when an insert would create a second record with the same unique key."""

    def __init__(self, collection: str, unique_key: str):
        self.collection = collection
        self.unique_key = unique_key
        super().__init__(f"{collection} already has a record for {unique_key!r}")


class DocumentStore(Protocol):
    """Collections of JSON-like records keyed by id.

    Records returned by the store always carry their ``id``. All writes
    publish a ChangeEvent on ``events``.
    """

    events: SubscriptionManager

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, record: Optional[dict]) -> None:
        """Create or replace a record; ``None`` deletes it."""

        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Mapping[str, object]) -> bool:
        """Merge fields into an existing record. Returns False when it does not exist."""

        raise NotImplementedError

    def new_id(self, collection: str) -> str:
        raise NotImplementedError

    def insert(self, collection: str, doc_id: str, record: dict, *, unique_key: Optional[str] = None) -> None:
        """Create a record, enforcing ``unique_key`` across the collection.

        Raises DuplicateKeyError if a live record already holds the key.
        """

        raise NotImplementedError

    def query(self, collection: str, **where: object) -> List[dict]:
        """Records whose fields equal every ``where`` value."""

        raise NotImplementedError

    def compare_and_update(
        self,
        collection: str,
        doc_id: str,
        *,
        expected: Mapping[str, object],
        fields: Mapping[str, object],
    ) -> bool:
        """Apply ``fields`` only if the stored record still matches ``expected``."""

        raise NotImplementedError

    def compare_and_delete(self, collection: str, doc_id: str, *, expected: Mapping[str, object]) -> bool:
        raise NotImplementedError

    def subscribe(self, collection: str, callback: SnapshotCallback, **where: object) -> Subscription:
        raise NotImplementedError
