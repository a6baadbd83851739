"""Dependency providers and settings management."""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import AuthenticationError
from .security import validate_encryption_key
from .services.auth_service import AuthIdentity, Authenticator

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment or .env."""

    # Session tokens
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 7 * 24 * 60
    BCRYPT_ROUNDS: int = 12

    # Fernet key for encrypting stored third-party API keys
    TOKEN_ENCRYPTION_KEY: str

    # Auth cookie. Domain must NOT include protocol (https://);
    # None means a host-only cookie.
    AUTH_COOKIE_NAME: str = "auth-token"
    COOKIE_DOMAIN: Optional[str] = None

    ENVIRONMENT: str = "development"
    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"

    # Accept X-User-Id instead of a session cookie (only behind a trusted gateway)
    TRUST_USER_ID_HEADER: bool = False

    # Create tables from ORM metadata on startup (dev/SQLite; prod uses Alembic)
    AUTO_CREATE_TABLES: bool = False

    SENTRY_DSN: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("TOKEN_ENCRYPTION_KEY")
    @classmethod
    def _check_encryption_key(cls, value: str) -> str:
        validate_encryption_key(value)
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_authenticator(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Authenticator:
    """Build the request-scoped Authenticator."""
    return Authenticator(db, settings)


def get_current_identity(
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> AuthIdentity:
    """Resolve the acting identity for a protected request.

    The session cookie wins. The `X-User-Id` header is only honoured when
    TRUST_USER_ID_HEADER is enabled. Raises AuthenticationError (-> 401).
    """
    auth_token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if auth_token:
        # Remove optional "Bearer " prefix
        token = auth_token[len("Bearer "):] if auth_token.startswith("Bearer ") else auth_token
        return authenticator.authenticate_session(token)

    if x_user_id and settings.TRUST_USER_ID_HEADER:
        return authenticator.identity_for_user_id(x_user_id)

    raise AuthenticationError("Not authenticated")
