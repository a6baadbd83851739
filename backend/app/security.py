"""Security utilities for password hashing, JWTs and secret encryption.

WHAT:
    Centralizes bcrypt password hashing, session JWT helpers, and symmetric
    encryption for user-supplied Google API keys.

WHY:
    - Password and JWT helpers back app/services/auth_service.py.
    - Encryption keeps third-party API keys out of plaintext storage.

Secrets (JWT secret, Fernet key) are passed in by the caller from
`app.deps.Settings`; nothing here reads the environment.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError, jwt
from passlib.hash import bcrypt


logger = logging.getLogger(__name__)

# Default bcrypt cost factor
BCRYPT_ROUNDS = 12


def get_password_hash(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plaintext password using salted bcrypt."""
    return bcrypt.using(rounds=rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    Malformed stored hashes verify as False instead of raising.
    """
    try:
        return bcrypt.verify(password, password_hash)
    except (ValueError, TypeError):
        logger.warning("[SECURITY] Stored password hash could not be parsed")
        return False


def create_access_token(
    claims: Dict[str, Any],
    *,
    secret: str,
    algorithm: str,
    expires_minutes: int,
) -> str:
    """Create a signed JWT carrying `claims` plus `iat` and `exp`."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes)
    to_encode: Dict[str, Any] = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(token: str, *, secret: str, algorithm: str) -> Dict[str, Any]:
    """Decode and validate a JWT (signature and expiry), returning its payload.

    Raises jose.JWTError on failure.
    """
    return jwt.decode(token, secret, algorithms=[algorithm])


# =============================================================================
# SECRET ENCRYPTION
# =============================================================================

@lru_cache()
def _get_cipher(key: str) -> Fernet:
    return Fernet(key)


def validate_encryption_key(key: str) -> None:
    """Raise ValueError unless `key` is a URL-safe base64 32-byte Fernet key."""
    try:
        _get_cipher(key)
    except (ValueError, TypeError) as exc:
        raise ValueError(
            "TOKEN_ENCRYPTION_KEY must be a URL-safe base64-encoded 32-byte string. "
            "Generate with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
        ) from exc


def encrypt_secret(plaintext: str, *, key: str, context: str) -> str:
    """Encrypt a secret before persisting.

    Args:
        plaintext: Raw secret (e.g., Google API key).
        key:       Fernet key from settings.
        context:   Friendly label for logs.

    Returns:
        URL-safe base64 ciphertext suitable for DB storage.
    """
    if not plaintext:
        raise ValueError("Cannot encrypt empty secret.")

    ciphertext = _get_cipher(key).encrypt(plaintext.encode("utf-8")).decode("utf-8")
    logger.info("[TOKEN_ENCRYPT] Secret encrypted for %s (length=%d)", context, len(plaintext))
    return ciphertext


def decrypt_secret(ciphertext: str, *, key: str, context: str) -> str:
    """Reverse `encrypt_secret`.

    Raises:
        ValueError: If the stored value cannot be decrypted.
    """
    if not ciphertext:
        raise ValueError("Cannot decrypt empty secret.")

    try:
        return _get_cipher(key).decrypt(ciphertext.encode("utf-8")).decode("utf-8")
    except InvalidToken as exc:
        logger.error("[TOKEN_DECRYPT] Invalid ciphertext for %s", context)
        raise ValueError("Unable to decrypt stored secret.") from exc


__all__ = [
    "JWTError",
    "create_access_token",
    "decode_token",
    "decrypt_secret",
    "encrypt_secret",
    "get_password_hash",
    "validate_encryption_key",
    "verify_password",
]
