"""
Password hashing and bearer token handling.

Passwords are stored as bcrypt hashes. Access tokens are HS256 JWTs
carrying the user id in `sub`.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from ygodeck.config import settings
from ygodeck.models.failure import InvalidTokenError


def _secret(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a plain-text password with a fresh salt."""
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored hash."""
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def create_access_token(user_id: int, email: str, now: datetime | None = None) -> str:
    """Issue a signed access token for a user."""
    issued_at = now or datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """
    Decode an access token and return the user id it was issued for.

    Raises:
        InvalidTokenError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return int(payload["sub"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError() from e
