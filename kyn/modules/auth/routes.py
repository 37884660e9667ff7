from fastapi import APIRouter, Depends
from kyn.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, CurrentUserResponse
)
from kyn.modules.auth.service import AuthService
from kyn.modules.profiles.service import ProfileService
from kyn.core.dependencies import (
    get_auth_service, get_profile_service, get_current_token, get_current_user
)
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new account"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Current account and whether onboarding is complete (frontend redirects when it is not)"""
    profile = profiles.find_by_user_id(current_user["id"])
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        profile_id=profile.id if profile else None,
        onboarded=profile is not None,
    )
