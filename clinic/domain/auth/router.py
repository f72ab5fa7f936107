"""Auth router - FastAPI endpoints for accounts and tokens"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse, MessageResponse
from .schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AuthService = Depends(get_auth_service),
):
    """Register a user (ADMIN only once the first account exists)"""
    user = service.register(data, current_user)
    return {"success": True, "data": UserResponse.model_validate(user)}


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    result = service.login(data.email, data.password)
    return {
        "success": True,
        "data": LoginResponse(
            user=UserResponse.model_validate(result["user"]),
            access_token=result["access_token"],
            refresh_token=result["refresh_token"],
        ),
    }


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh(data: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange a refresh token for a new access token"""
    return {"success": True, "data": TokenResponse(access_token=service.refresh(data.refresh_token))}


@router.get("/profile", response_model=ApiResponse[UserResponse])
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return {"success": True, "data": UserResponse.model_validate(service.get_profile(current_user.id))}


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(current_user.id, data)
    return {"success": True, "data": UserResponse.model_validate(user)}


@router.put("/change-password", response_model=ApiResponse[MessageResponse])
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(current_user.id, data)
    return {"success": True, "data": {"message": "Password changed successfully"}}
