from fastapi import APIRouter, Depends, Request
from kyn.config import settings
from kyn.database.supabase_client import get_supabase
from kyn.modules.invites.schemas import (
    InvitePasswordResponse, InviteTokenResponse, JoinRequest, JoinLinkRequest, JoinResponse
)
from kyn.modules.invites.service import InviteService
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.schemas import ProfileResponse
from kyn.core.dependencies import get_current_profile, get_profile_memberships, require_family_permission
from kyn.core.rate_limit import limiter
from supabase import Client

router = APIRouter(tags=["invites"])


def get_invite_service(supabase: Client = Depends(get_supabase)) -> InviteService:
    return InviteService(supabase)


@router.post("/families/{family_id}/invites/password", response_model=InvitePasswordResponse, status_code=201)
async def generate_invite_password(
    family_id: str,
    context: FamilyContext = Depends(require_family_permission("family:invite")),
    service: InviteService = Depends(get_invite_service)
):
    """Generate a new invite password; the previous one stops working"""
    return service.generate_password(family_id)


@router.post("/families/{family_id}/invites/token", response_model=InviteTokenResponse, status_code=201)
async def generate_invite_token(
    family_id: str,
    context: FamilyContext = Depends(require_family_permission("family:invite")),
    service: InviteService = Depends(get_invite_service)
):
    """Generate a single-use invite link (for sharing or QR codes)"""
    return service.generate_invite_token(family_id, created_by=context.profile_id)


@router.post("/join", response_model=JoinResponse)
@limiter.limit(settings.join_rate_limit)
async def join_family(
    request: Request,
    join_request: JoinRequest,
    profile: ProfileResponse = Depends(get_current_profile),
    service: InviteService = Depends(get_invite_service),
    supabase: Client = Depends(get_supabase)
):
    """Join a family with an invite password or invite token"""
    memberships = get_profile_memberships(profile.id, supabase)
    return service.join_family(profile.id, join_request.method, join_request.value, memberships)


@router.post("/join/link", response_model=JoinResponse)
@limiter.limit(settings.join_rate_limit)
async def join_family_by_link(
    request: Request,
    join_request: JoinLinkRequest,
    profile: ProfileResponse = Depends(get_current_profile),
    service: InviteService = Depends(get_invite_service),
    supabase: Client = Depends(get_supabase)
):
    """Join a family from a full /join?family=...&token=... link"""
    memberships = get_profile_memberships(profile.id, supabase)
    return service.join_by_link(profile.id, join_request.url, memberships)
