from fastapi import APIRouter, Depends
from kyn.modules.profiles.schemas import OnboardingRequest, ProfileUpdate, ProfileResponse
from kyn.modules.profiles.service import ProfileService
from kyn.core.dependencies import get_current_user, get_current_profile, get_profile_service
from typing import Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("/onboarding", response_model=ProfileResponse, status_code=201)
async def onboard(
    onboarding: OnboardingRequest,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Create the caller's profile (or refresh it if onboarding is repeated)"""
    return service.onboard(current_user, onboarding)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: ProfileResponse = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update full name / avatar"""
    return service.update_profile(profile.id, profile_data)
