"""
Password hashing and JWT helpers
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_EXPIRES_MINUTES,
    JWT_REFRESH_EXPIRES_DAYS,
    JWT_REFRESH_SECRET,
    SECRET_KEY,
)

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# JWT TOKENS
# ============================================================================


def _encode(data: dict[str, Any], secret: str, expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta, "type": token_type})
    return jose_jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def _decode(token: str, secret: str, token_type: str) -> Optional[dict[str, Any]]:
    try:
        payload = jose_jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None
    if payload.get("type") != token_type:
        logger.warning(f"JWT type mismatch: expected {token_type}")
        return None
    return payload


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a short-lived access token

    Args:
        data: Claims to encode (user_id, email, role)
        expires_delta: Token lifetime (default JWT_EXPIRES_MINUTES)
    """
    return _encode(
        data, SECRET_KEY, expires_delta or timedelta(minutes=JWT_EXPIRES_MINUTES), "access"
    )


def create_refresh_token(data: dict[str, Any]) -> str:
    return _encode(data, JWT_REFRESH_SECRET, timedelta(days=JWT_REFRESH_EXPIRES_DAYS), "refresh")


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode an access token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    return _decode(token, SECRET_KEY, "access")


def verify_refresh_token(token: str) -> Optional[dict[str, Any]]:
    return _decode(token, JWT_REFRESH_SECRET, "refresh")
