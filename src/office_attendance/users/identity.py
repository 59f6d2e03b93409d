"""Identity provider collaborator.

The domain only needs a stable subject id plus an optional display name and
email. ``LocalIdentityProvider`` keeps email/password credentials in the
document store; hosted providers plug in behind the same protocol.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_ms
from ..common.validators import optional_text, require_email, require_min_length
from ..core.constants import CREDENTIALS
from ..core.exceptions import AuthenticationError
from ..store.base import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


AuthStateCallback = Callable[[Optional[Identity]], None]


class IdentityProvider(Protocol):
    def sign_in_with_password(self, email: str, password: str) -> Identity:
        raise NotImplementedError

    def sign_up_with_password(self, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        raise NotImplementedError

    def sign_in_with_oauth(self, provider: str) -> Identity:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function."""

        raise NotImplementedError


class LocalIdentityProvider(IdentityProvider):
    """Email/password identities stored in the ``credentials`` collection."""

    def __init__(self, store: DocumentStore, *, min_password_length: int = 6):
        self._store = store
        self._min_password_length = min_password_length
        self._listeners: List[AuthStateCallback] = []
        self._lock = threading.Lock()

    def sign_up_with_password(self, email: str, password: str, display_name: Optional[str] = None) -> Identity:
        email = require_email(email)
        require_min_length(password, "Password", self._min_password_length)
        key = email.lower()

        uid = self._store.new_id(CREDENTIALS)
        # Duplicate emails surface as DuplicateKeyError (a ConflictError).
        self._store.insert(
            CREDENTIALS,
            uid,
            {
                "email": key,
                "passwordHash": generate_password_hash(password),
                "displayName": optional_text(display_name),
                "createdAt": now_ms(),
            },
            unique_key=key,
        )
        identity = Identity(uid=uid, email=email, display_name=optional_text(display_name))
        logger.info("Registered identity %s", uid)
        self._notify(identity)
        return identity

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        key = (email or "").strip().lower()
        rows = self._store.query(CREDENTIALS, email=key) if key else []
        cred = rows[0] if rows else None

        try:
            ok = bool(cred) and check_password_hash(cred["passwordHash"], password or "")
        except ValueError:
            # e.g. corrupted or unsupported hash values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        identity = Identity(uid=cred["id"], email=cred.get("email"), display_name=cred.get("displayName"))
        self._notify(identity)
        return identity

    def sign_in_with_oauth(self, provider: str) -> Identity:
        raise AuthenticationError(f"OAuth provider {provider!r} is not configured")

    def sign_out(self) -> None:
        self._notify(None)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, identity: Optional[Identity]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(identity)
