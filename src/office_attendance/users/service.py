from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.datetime_utils import now_ms
from ..common.validators import optional_text, require_email, require_non_empty
from ..core.constants import DEFAULT_USER_NAME
from ..core.exceptions import NotFoundError
from .identity import Identity, IdentityProvider
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: authenticate through the identity provider and keep a local profile."""

    def __init__(self, identity: IdentityProvider, users: UserRepository):
        self._identity = identity
        self._users = users

    def ensure_profile(self, identity: Identity, *, display_name: Optional[str] = None) -> User:
        """Return the user's profile, creating it on first sight."""
        existing = self._users.get_by_id(identity.uid)
        if existing:
            return existing

        email = require_email(identity.email)
        name = (
            optional_text(display_name)
            or optional_text(identity.display_name)
            or optional_text(email.split("@")[0])
            or DEFAULT_USER_NAME
        )
        user = User(user_id=identity.uid, name=name, email=email, created_at=now_ms())
        self._users.create(user)
        logger.info("Created profile for %s", user.user_id)
        return user

    def watch(self) -> Callable[[], None]:
        """Create profiles for every identity the provider reports. Returns an unsubscribe."""

        def on_change(identity: Optional[Identity]) -> None:
            if identity is not None:
                self.ensure_profile(identity)

        return self._identity.on_auth_state_changed(on_change)

    def sign_up(self, *, email: str, password: str, name: str) -> User:
        name = require_non_empty(name, "Name")
        identity = self._identity.sign_up_with_password(email, password, display_name=name)
        return self.ensure_profile(identity, display_name=name)

    def sign_in(self, *, email: str, password: str) -> User:
        identity = self._identity.sign_in_with_password(email, password)
        return self.ensure_profile(identity)

    def sign_in_with_oauth(self, provider: str) -> User:
        identity = self._identity.sign_in_with_oauth(provider)
        return self.ensure_profile(identity)

    def sign_out(self) -> None:
        self._identity.sign_out()

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
