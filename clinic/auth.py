import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError
from .models import User, UserRole
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the user behind the Bearer access token"""
    if not credentials:
        raise AuthenticationError("No token provided")

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("user_id")
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user or not user.is_active:
        logger.warning(f"Token for unknown or inactive user {user_id}")
        raise AuthenticationError("User not found or inactive")

    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting a route to the given roles.

    Usage: current_user: User = Depends(require_roles(UserRole.ADMIN))
    """

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(f"User {user.email} ({user.role.value}) denied; requires {roles}")
            raise PermissionDeniedError("Forbidden: Insufficient permissions")
        return user

    return checker


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user when a valid Bearer token is sent, otherwise None"""
    if not credentials:
        return None
    payload = verify_access_token(credentials.credentials)
    if not payload or not payload.get("user_id"):
        return None
    user = db.query(User).filter(User.id == payload["user_id"]).first()
    return user if user and user.is_active else None
