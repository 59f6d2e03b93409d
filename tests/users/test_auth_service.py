from __future__ import annotations

import pytest

from office_attendance.core.exceptions import AuthenticationError, ConflictError, ValidationError
from office_attendance.users.identity import Identity
from office_attendance.users.model import User


def test_ensure_profile_uses_display_name(container):
    user = container.auth_service.ensure_profile(Identity(uid="u1", email="ann@example.com", display_name=" Ann "))

    assert user.name == "Ann"
    assert container.users_repo.get_by_id("u1").email == "ann@example.com"


def test_ensure_profile_falls_back_to_email_local_part(container):
    user = container.auth_service.ensure_profile(Identity(uid="u1", email="ben.smith@example.com"))

    assert user.name == "ben.smith"


def test_ensure_profile_keeps_existing_profile(container):
    container.users_repo.create(User(user_id="u1", name="Original", email="o@example.com", created_at=5))

    user = container.auth_service.ensure_profile(Identity(uid="u1", email="new@example.com", display_name="New"))

    assert user.name == "Original"
    assert user.created_at == 5


def test_ensure_profile_requires_valid_email(container):
    with pytest.raises(ValidationError):
        container.auth_service.ensure_profile(Identity(uid="u1", email="not-an-email"))


def test_sign_up_then_sign_in(container):
    auth = container.auth_service

    created = auth.sign_up(email="Ann@Example.com", password="secret1", name="Ann")
    signed_in = auth.sign_in(email="ann@example.com", password="secret1")

    assert signed_in.user_id == created.user_id
    assert signed_in.name == "Ann"
    assert auth.get_user(created.user_id) == created


def test_sign_up_rejects_duplicates_and_weak_passwords(container):
    auth = container.auth_service
    auth.sign_up(email="ann@example.com", password="secret1", name="Ann")

    with pytest.raises(ConflictError):
        auth.sign_up(email="ANN@example.com", password="secret2", name="Ann Again")
    with pytest.raises(ValidationError):
        auth.sign_up(email="bob@example.com", password="123", name="Bob")
    with pytest.raises(ValidationError):
        auth.sign_up(email="bob@example.com", password="secret1", name="  ")


def test_sign_in_with_wrong_password(container):
    container.auth_service.sign_up(email="ann@example.com", password="secret1", name="Ann")

    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in(email="ann@example.com", password="wrong")
    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in(email="nobody@example.com", password="secret1")


def test_oauth_is_not_configured_locally(container):
    with pytest.raises(AuthenticationError):
        container.auth_service.sign_in_with_oauth("google")


def test_watch_creates_profiles_until_unsubscribed(container):
    identity = container.identity
    stop = container.auth_service.watch()

    first = identity.sign_up_with_password("ann@example.com", "secret1", display_name="Ann")
    assert container.users_repo.get_by_id(first.uid).name == "Ann"

    stop()
    second = identity.sign_up_with_password("bob@example.com", "secret1")
    assert container.users_repo.get_by_id(second.uid) is None


def test_sign_out_notifies_listeners(container):
    seen = []
    container.identity.on_auth_state_changed(seen.append)

    container.auth_service.sign_out()

    assert seen == [None]


@pytest.mark.parametrize("email", ["bob@..com", "bob@example..com", "bob@-x.com", "bob", ""])
def test_ensure_profile_rejects_malformed_emails(container, email):
    with pytest.raises(ValidationError):
        container.auth_service.ensure_profile(Identity(uid="u1", email=email))

    assert container.users_repo.get_by_id("u1") is None


def test_ensure_profile_normalizes_email_domain(container):
    user = container.auth_service.ensure_profile(Identity(uid="u1", email=" Ann@Example.COM "))

    assert user.email == "Ann@example.com"
