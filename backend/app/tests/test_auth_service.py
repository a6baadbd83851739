"""Authenticator and identity change tests (service level)."""

import pytest

from app.exceptions import AuthenticationError, ConflictError, ValidationError
from app.models import User
from app.security import create_access_token, verify_password
from app.services.auth_service import IdentityChangeService


# ============================================================================
# Register / login
# ============================================================================

def test_register_then_login_returns_same_user(authenticator):
    registered = authenticator.register("a@x.com", "secret1", "Alex")
    logged_in = authenticator.login("a@x.com", "secret1")

    assert logged_in.user.id == registered.user.id
    assert logged_in.token


def test_register_stores_hash_not_password(authenticator, test_db_session):
    result = authenticator.register("a@x.com", "secret1", "Alex")

    stored = test_db_session.query(User).filter(User.id == result.user.id).one()
    assert stored.password_hash != "secret1"
    assert verify_password("secret1", stored.password_hash)


@pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "a b@x.com", "@x.com"])
def test_register_rejects_malformed_email(authenticator, email):
    with pytest.raises(ValidationError):
        authenticator.register(email, "secret1", "Alex")


def test_register_rejects_short_password(authenticator):
    with pytest.raises(ValidationError):
        authenticator.register("a@x.com", "12345", "Alex")


def test_register_rejects_empty_name(authenticator):
    with pytest.raises(ValidationError):
        authenticator.register("a@x.com", "secret1", "   ")


def test_register_duplicate_email_conflicts(authenticator, test_user):
    with pytest.raises(ConflictError):
        authenticator.register("a@x.com", "another1", "Someone")


def test_wrong_password_and_unknown_email_share_message(authenticator, test_user):
    with pytest.raises(AuthenticationError) as wrong_password:
        authenticator.login("a@x.com", "wrong-password")
    with pytest.raises(AuthenticationError) as unknown_email:
        authenticator.login("nobody@x.com", "secret1")

    assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"


def test_inactive_user_cannot_login(authenticator, test_user, test_db_session):
    test_user.is_active = False
    test_db_session.commit()

    with pytest.raises(AuthenticationError):
        authenticator.login("a@x.com", "secret1")


# ============================================================================
# Token verification
# ============================================================================

def test_verify_roundtrips_identity(authenticator, test_user):
    token = authenticator.login("a@x.com", "secret1").token

    identity = authenticator.verify(token)
    assert identity.user_id == test_user.id
    assert identity.email == "a@x.com"


def test_verify_rejects_token_signed_with_other_secret(authenticator, test_user, settings):
    forged = create_access_token(
        {"sub": str(test_user.id), "userId": str(test_user.id), "email": test_user.email},
        secret="not-the-server-secret",
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=60,
    )

    with pytest.raises(AuthenticationError):
        authenticator.verify(forged)


def test_verify_rejects_garbage(authenticator):
    with pytest.raises(AuthenticationError):
        authenticator.verify("not.a.jwt")


def test_verify_rejects_expired_token(authenticator, expired_token):
    with pytest.raises(AuthenticationError):
        authenticator.verify(expired_token)


def test_verify_rejects_missing_token(authenticator):
    with pytest.raises(AuthenticationError):
        authenticator.verify(None)


# ============================================================================
# Identity changes
# ============================================================================

def test_change_password_swaps_credentials(authenticator, test_user):
    IdentityChangeService(authenticator).change_password("a@x.com", "secret1", "newpass1")

    assert authenticator.login("a@x.com", "newpass1").user.id == test_user.id
    with pytest.raises(AuthenticationError):
        authenticator.login("a@x.com", "secret1")


def test_change_password_requires_current_password(authenticator, test_user):
    with pytest.raises(AuthenticationError):
        IdentityChangeService(authenticator).change_password("a@x.com", "wrong1", "newpass1")

    assert authenticator.login("a@x.com", "secret1").user.id == test_user.id


def test_change_password_rejects_short_new_password(authenticator, test_user):
    with pytest.raises(ValidationError):
        IdentityChangeService(authenticator).change_password("a@x.com", "secret1", "short")


def test_change_email_updates_login(authenticator, test_user):
    user = IdentityChangeService(authenticator).change_email("a@x.com", "new@x.com", "secret1")

    assert user.email == "new@x.com"
    assert authenticator.login("new@x.com", "secret1").user.id == test_user.id
    with pytest.raises(AuthenticationError):
        authenticator.login("a@x.com", "secret1")


def test_change_email_to_taken_address_conflicts(authenticator, test_user, other_user, test_db_session):
    with pytest.raises(ConflictError):
        IdentityChangeService(authenticator).change_email("a@x.com", "b@y.com", "secret1")

    test_db_session.expire_all()
    assert authenticator.get_user(test_user.id).email == "a@x.com"


def test_change_email_validates_format(authenticator, test_user):
    with pytest.raises(ValidationError):
        IdentityChangeService(authenticator).change_email("a@x.com", "not-an-email", "secret1")


def test_change_email_wrong_password(authenticator, test_user):
    with pytest.raises(AuthenticationError):
        IdentityChangeService(authenticator).change_email("a@x.com", "new@x.com", "nope123")


# ============================================================================
# Profile settings
# ============================================================================

def test_update_profile_encrypts_google_api_key(authenticator, test_user):
    user = authenticator.update_profile(test_user.id, {"google_api_key": "AIza-test-key"})

    assert user.google_api_key_enc
    assert user.google_api_key_enc != "AIza-test-key"
    assert user.has_google_api_key
    assert authenticator.get_google_api_key(user) == "AIza-test-key"


def test_update_profile_clears_key_and_leaves_other_fields(authenticator, test_user):
    authenticator.update_profile(test_user.id, {"google_api_key": "AIza-test-key", "google_client_id": "cid"})
    user = authenticator.update_profile(test_user.id, {"google_api_key": ""})

    assert not user.has_google_api_key
    assert user.google_client_id == "cid"
    assert user.name == "Alex"


def test_authenticate_session_rejects_deactivated_user(authenticator, test_user, test_db_session):
    token = authenticator.login("a@x.com", "secret1").token
    assert authenticator.authenticate_session(token).user_id == test_user.id

    test_user.is_active = False
    test_db_session.commit()

    with pytest.raises(AuthenticationError):
        authenticator.authenticate_session(token)
