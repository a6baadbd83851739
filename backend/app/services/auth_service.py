"""Authentication Service - credentials, session tokens and identity changes.

WHAT:
    - Authenticator: register / login / logout / verify for cookie-based JWT
      sessions backed by the `users` table.
    - IdentityChangeService: email and password changes, each re-verifying
      the current credential through the Authenticator first.

WHY:
    Routers (app/routers/auth.py) and the request dependency
    (app/deps.py:get_current_identity) share one verification primitive, so
    every path reports failures with the same generic AuthenticationError.

REFERENCES:
    - app/security.py (bcrypt + JWT helpers)
    - app/models.py:User
    - app/exceptions.py (error kinds)
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import AuthenticationError, ConflictError, ValidationError
from ..models import User, utcnow
from ..security import (
    JWTError,
    create_access_token,
    decode_token,
    decrypt_secret,
    encrypt_secret,
    get_password_hash,
    verify_password,
)

if TYPE_CHECKING:
    from ..deps import Settings

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_SESSION = "Invalid or expired session"


@dataclass(frozen=True)
class AuthIdentity:
    """The acting identity resolved from a session token."""
    user_id: UUID
    email: str


@dataclass
class AuthResult:
    """A user plus a freshly issued session token."""
    user: User
    token: str


def validate_email(email: Optional[str]) -> str:
    if not email or not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    return email


def validate_password(password: Optional[str], label: str = "Password") -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


@lru_cache()
def _dummy_hash(rounds: int) -> str:
    # Verified against when the email is unknown so both failure paths cost a bcrypt check
    return get_password_hash("not-a-real-password", rounds=rounds)


class Authenticator:
    """Verifies credentials, issues session tokens and validates them."""

    def __init__(self, db: Session, settings: "Settings"):
        self.db = db
        self.settings = settings

    # ------------------------------------------------------------------
    # Credential store
    # ------------------------------------------------------------------

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        query = self.db.query(User).filter(User.email == email)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def verify_credentials(self, email: str, password: str, for_update: bool = False) -> User:
        """Return the active user owning these credentials.

        Raises:
            AuthenticationError: Unknown email, inactive user or wrong password.
                The message is identical in every case.
        """
        user = self.get_user_by_email(email, for_update=for_update) if email else None
        if user is None:
            verify_password(password or "", _dummy_hash(self.settings.BCRYPT_ROUNDS))
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(password or "", user.password_hash) or not user.is_active:
            raise AuthenticationError(INVALID_CREDENTIALS)
        return user

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def issue_token(self, user: User) -> str:
        """Sign a session token embedding {userId, email}."""
        return create_access_token(
            {"sub": str(user.id), "userId": str(user.id), "email": user.email},
            secret=self.settings.JWT_SECRET,
            algorithm=self.settings.JWT_ALGORITHM,
            expires_minutes=self.settings.JWT_EXPIRES_MINUTES,
        )

    def register(self, email: str, password: str, name: str) -> AuthResult:
        """Create a user and log them in.

        Raises:
            ValidationError: Malformed email, short password or empty name.
            ConflictError: Email already registered.
        """
        validate_email(email)
        validate_password(password)
        if not name or not name.strip():
            raise ValidationError("Name is required")

        user = User(
            email=email,
            name=name.strip(),
            password_hash=get_password_hash(password, rounds=self.settings.BCRYPT_ROUNDS),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email already exists")
        self.db.refresh(user)

        logger.info(f"[AUTH] Registered user {user.id}")
        return AuthResult(user=user, token=self.issue_token(user))

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate and issue a 7-day session token."""
        user = self.verify_credentials(email, password)
        logger.info(f"[AUTH] User {user.id} logged in")
        return AuthResult(user=user, token=self.issue_token(user))

    def logout(self) -> None:
        """Stateless logout: the caller discards the token (cookie cleared).

        There is no server-side revocation list, so this is idempotent and
        needs no valid session.
        """
        logger.info("[AUTH] Logout requested")

    def verify(self, token: Optional[str]) -> AuthIdentity:
        """Check a session token's signature and expiry.

        Raises:
            AuthenticationError: Token absent, malformed, tampered or expired.
        """
        if not token:
            raise AuthenticationError("Not authenticated")

        try:
            payload = decode_token(
                token,
                secret=self.settings.JWT_SECRET,
                algorithm=self.settings.JWT_ALGORITHM,
            )
        except JWTError:
            raise AuthenticationError(INVALID_SESSION)

        user_id = payload.get("userId") or payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            raise AuthenticationError(INVALID_SESSION)

        try:
            return AuthIdentity(user_id=UUID(str(user_id)), email=email)
        except ValueError:
            raise AuthenticationError(INVALID_SESSION)

    def authenticate_session(self, token: Optional[str]) -> AuthIdentity:
        """verify() plus a lookup: the user must still exist and be active.

        A token issued before deactivation stops working on the next request.
        """
        identity = self.verify(token)
        user = self.get_user(identity.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError(INVALID_SESSION)
        return AuthIdentity(user_id=user.id, email=user.email)

    def identity_for_user_id(self, raw_user_id: str) -> AuthIdentity:
        """Resolve a caller-supplied user id (trusted gateway header)."""
        try:
            user_id = UUID(raw_user_id)
        except (TypeError, ValueError):
            raise AuthenticationError("Not authenticated")

        user = self.get_user(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Not authenticated")
        return AuthIdentity(user_id=user.id, email=user.email)

    # ------------------------------------------------------------------
    # Profile settings
    # ------------------------------------------------------------------

    def update_profile(self, user_id: UUID, changes: Dict[str, Any]) -> User:
        """Update name and Google API settings.

        `changes` holds only the keys the caller sent. A `google_api_key` of
        None or "" clears the stored key; any other value is encrypted.
        """
        user = self.get_user(user_id)
        if user is None:
            raise AuthenticationError("Not authenticated")

        try:
            if "name" in changes:
                name = (changes["name"] or "").strip()
                if not name:
                    raise ValidationError("Name is required")
                user.name = name
            if "google_client_id" in changes:
                user.google_client_id = changes["google_client_id"] or None
            if "google_api_key" in changes:
                api_key = changes["google_api_key"]
                user.google_api_key_enc = (
                    encrypt_secret(api_key, key=self.settings.TOKEN_ENCRYPTION_KEY, context=f"user:{user.id}")
                    if api_key else None
                )
            user.updated_at = utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        return user

    def get_google_api_key(self, user: User) -> Optional[str]:
        """Decrypt the stored Google API key, if any."""
        if not user.google_api_key_enc:
            return None
        return decrypt_secret(
            user.google_api_key_enc,
            key=self.settings.TOKEN_ENCRYPTION_KEY,
            context=f"user:{user.id}",
        )


class IdentityChangeService:
    """Email and password changes that re-verify the current credential.

    Verification and update happen in one transaction with the user row
    locked (FOR UPDATE on PostgreSQL), so the check always reads the
    pre-update state.
    """

    def __init__(self, authenticator: Authenticator):
        self.authenticator = authenticator
        self.db = authenticator.db

    def change_email(self, current_email: str, new_email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: current_email/password do not verify.
            ValidationError: new_email is malformed.
            ConflictError: new_email belongs to a different user.
        """
        try:
            user = self.authenticator.verify_credentials(current_email, password, for_update=True)
            validate_email(new_email)

            taken = (
                self.db.query(User.id)
                .filter(User.email == new_email, User.id != user.id)
                .first()
            )
            if taken:
                raise ConflictError("Email address already in use")

            user.email = new_email
            user.updated_at = utcnow()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email address already in use")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"[AUTH] Email changed for user {user.id}")
        return user

    def change_password(self, email: str, current_password: str, new_password: str) -> User:
        """
        Raises:
            AuthenticationError: email/current_password do not verify.
            ValidationError: new_password shorter than 6 characters.
        """
        try:
            user = self.authenticator.verify_credentials(email, current_password, for_update=True)
            validate_password(new_password, label="New password")

            user.password_hash = get_password_hash(
                new_password, rounds=self.authenticator.settings.BCRYPT_ROUNDS
            )
            user.updated_at = utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"[AUTH] Password changed for user {user.id}")
        return user
