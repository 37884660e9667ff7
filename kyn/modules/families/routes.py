from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.families.schemas import (
    FamilyCreate, FamilyResponse, MembershipSummary, FamilyMemberResponse,
    CoMemberResponse, InviteByEmailRequest, SelectFamilyRequest, SelectedFamilyResponse
)
from kyn.modules.families.service import FamilyService
from kyn.modules.families.switcher import FamilyContext, FamilySwitcher
from kyn.modules.profiles.schemas import ProfileResponse
from kyn.core.dependencies import (
    get_current_profile, get_family_context, get_family_switcher,
    get_profile_family_ids, require_family_permission
)
from supabase import Client
from typing import List

router = APIRouter(prefix="/families", tags=["families"])


def get_family_service(supabase: Client = Depends(get_supabase)) -> FamilyService:
    return FamilyService(supabase)


@router.post("", response_model=FamilyResponse, status_code=201)
async def create_family(
    family_data: FamilyCreate,
    profile: ProfileResponse = Depends(get_current_profile),
    service: FamilyService = Depends(get_family_service)
):
    """Create a family; the caller becomes its admin. One family per creator."""
    return service.create_family(family_data.name, profile.id)


@router.get("", response_model=List[MembershipSummary])
async def list_my_families(
    profile: ProfileResponse = Depends(get_current_profile),
    service: FamilyService = Depends(get_family_service)
):
    """Families the caller belongs to, with role and whether they created it"""
    return service.list_memberships(profile.id)


@router.get("/selected", response_model=SelectedFamilyResponse)
async def get_selected_family(
    profile: ProfileResponse = Depends(get_current_profile),
    switcher: FamilySwitcher = Depends(get_family_switcher),
    supabase: Client = Depends(get_supabase)
):
    """Selected family, defaulting to the first membership when unset or stale"""
    family_ids = get_profile_family_ids(profile.id, supabase)
    return SelectedFamilyResponse(family_id=switcher.resolve(family_ids))


@router.put("/selected", response_model=SelectedFamilyResponse)
async def select_family(
    request: SelectFamilyRequest,
    profile: ProfileResponse = Depends(get_current_profile),
    switcher: FamilySwitcher = Depends(get_family_switcher),
    supabase: Client = Depends(get_supabase)
):
    family_ids = get_profile_family_ids(profile.id, supabase)
    return SelectedFamilyResponse(family_id=switcher.select(request.family_id, family_ids))


@router.delete("/selected", status_code=204)
async def clear_selected_family(switcher: FamilySwitcher = Depends(get_family_switcher)):
    switcher.clear()
    return None


@router.get("/{family_id}", response_model=FamilyResponse)
async def get_family(
    family_id: str,
    context: FamilyContext = Depends(get_family_context),
    service: FamilyService = Depends(get_family_service)
):
    """Get family by ID (only if caller is a member)"""
    return service.get_family(family_id)


@router.get("/{family_id}/members", response_model=List[FamilyMemberResponse])
async def list_members(
    family_id: str,
    context: FamilyContext = Depends(get_family_context),
    service: FamilyService = Depends(get_family_service)
):
    """List all members of a family (only if caller is a member)"""
    return service.list_members(family_id)


@router.get("/{family_id}/co-members", response_model=List[CoMemberResponse])
async def list_co_members(
    family_id: str,
    context: FamilyContext = Depends(get_family_context),
    service: FamilyService = Depends(get_family_service)
):
    """Members other than the caller, for recipient pickers"""
    return service.list_co_members(family_id, context.profile_id)


@router.post("/{family_id}/members", response_model=FamilyMemberResponse, status_code=201)
async def invite_by_email(
    family_id: str,
    invite: InviteByEmailRequest,
    context: FamilyContext = Depends(require_family_permission("family:invite")),
    service: FamilyService = Depends(get_family_service)
):
    """Add an already onboarded user to the family by email (requires family admin)"""
    return service.invite_by_email(family_id, invite.email)
