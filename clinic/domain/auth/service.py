"""Auth service - registration, login and profile management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from ...models import User, UserRole
from ...security_utils import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)
from ...shared.time_utils import utcnow
from .schemas import ChangePasswordRequest, ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


def token_claims(user: User) -> dict:
    return {"user_id": user.id, "email": user.email, "role": user.role.value}


class AuthService:
    """Service layer for authentication"""

    def __init__(self, db: Session):
        self.db = db

    def register(self, data: RegisterRequest, current_user: Optional[User] = None) -> User:
        """
        Create a user account.

        Only an ADMIN may register users, except for the very first account,
        which bootstraps the clinic.
        """
        has_users = self.db.query(User.id).first() is not None
        if has_users and (current_user is None or current_user.role != UserRole.ADMIN):
            raise PermissionDeniedError("Only administrators can register users")

        email = data.email.lower()
        if self.db.query(User).filter(User.email == email).first():
            raise ValidationError("User already exists", context={"email": email})

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role if has_users else UserRole.ADMIN,
            phone=data.phone,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.email} registered as {user.role.value}")
        return user

    def login(self, email: str, password: str) -> dict:
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")

        user.last_login = utcnow()
        self.db.commit()
        self.db.refresh(user)

        claims = token_claims(user)
        logger.info(f"User {user.email} logged in")
        return {
            "user": user,
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
        }

    def refresh(self, refresh_token: str) -> str:
        payload = verify_refresh_token(refresh_token)
        if not payload:
            raise AuthenticationError("Invalid refresh token")

        user = self.db.query(User).filter(User.id == payload.get("user_id")).first()
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return create_access_token(token_claims(user))

    def get_profile(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, data: ProfileUpdate) -> User:
        user = self.get_profile(user_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None or key == "phone":
                setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: int, data: ChangePasswordRequest) -> None:
        user = self.get_profile(user_id)
        if not verify_password(data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        user.password_hash = hash_password(data.new_password)
        self.db.commit()
        logger.info(f"Password changed for {user.email}")
