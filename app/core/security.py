"""Security helpers (password hashing and session tokens)."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from argon2 import PasswordHasher, exceptions as argon_exc
from jose import JWTError, jwt

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Create an Argon2 hash of a plain password."""
    return _ph.hash(password)


def verify_password(password: Optional[str], stored_hash: Optional[str]) -> bool:
    if not password or not stored_hash:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token for a user.

    Args:
        user_id: Id of the authenticated user
        expires_delta: Optional lifetime, defaults to JWT_EXPIRES_DAYS

    Returns:
        JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.JWT_EXPIRES_DAYS)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a session token.

    Returns:
        Token payload, or None if the signature or expiry is invalid
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token rejected: {e}")
        return None
