"""
Core dependencies for identity resolution and family-scoped route protection
"""

from fastapi import Depends, Query, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from kyn.database.supabase_client import get_supabase
from kyn.config.permissions_config import role_has_permission
from kyn.core.errors import (
    NotAuthenticated, NotFamilyMember, InsufficientFamilyRole, NoFamilySelected, OperationFailed
)
from kyn.modules.auth.service import AuthService
from kyn.modules.profiles.service import ProfileService
from kyn.modules.profiles.schemas import ProfileResponse
from kyn.modules.families.switcher import FamilyContext, FamilySwitcher, SupabaseSelectionStore
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current account info from JWT token"""
    return auth_service.get_current_user(token)


def get_current_profile(
    user_data: dict = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service)
) -> ProfileResponse:
    """Resolve the application profile of the authenticated account"""
    return profile_service.get_by_user_id(user_data["id"])


def get_profile_memberships(profile_id: str, supabase: Client) -> List[Dict[str, Any]]:
    """Return the profile's family_members rows, oldest membership first."""
    try:
        result = supabase.table("family_members")\
            .select("id, family_id, role, joined_at")\
            .eq("profile_id", profile_id)\
            .order("joined_at")\
            .execute()
    except Exception as e:
        logger.error(f"Error getting memberships for profile {profile_id}: {e}")
        raise OperationFailed("Could not check family membership")
    return result.data or []


def get_profile_family_ids(profile_id: str, supabase: Client) -> List[str]:
    return [m["family_id"] for m in get_profile_memberships(profile_id, supabase)]


def get_membership(family_id: str, profile_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    """Return the membership row linking profile to family, or None"""
    try:
        result = supabase.table("family_members")\
            .select("id, family_id, profile_id, role")\
            .eq("family_id", family_id)\
            .eq("profile_id", profile_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        logger.error(f"Error checking membership of {profile_id} in {family_id}: {e}")
        raise OperationFailed("Could not check family membership")
    return result.data[0] if result.data else None


def check_family_member(family_id: str, profile_id: str, supabase: Client) -> FamilyContext:
    """Require membership and return the caller's context for that family"""
    membership = get_membership(family_id, profile_id, supabase)
    if not membership:
        raise NotFamilyMember()
    return FamilyContext(profile_id=profile_id, family_id=family_id, role=membership["role"])


def get_selection_store(supabase: Client = Depends(get_supabase)) -> SupabaseSelectionStore:
    return SupabaseSelectionStore(supabase)


def get_family_switcher(
    profile: ProfileResponse = Depends(get_current_profile),
    store: SupabaseSelectionStore = Depends(get_selection_store)
) -> FamilySwitcher:
    return FamilySwitcher(store, profile.id)


def get_family_context(
    family_id: str,
    profile: ProfileResponse = Depends(get_current_profile),
    supabase: Client = Depends(get_supabase)
) -> FamilyContext:
    """Context for routes that name the family in the path"""
    return check_family_member(family_id, profile.id, supabase)


def get_active_family_context(
    family_id: Optional[str] = Query(None, description="Defaults to the selected family"),
    profile: ProfileResponse = Depends(get_current_profile),
    switcher: FamilySwitcher = Depends(get_family_switcher),
    supabase: Client = Depends(get_supabase)
) -> FamilyContext:
    """Context for feature routes: explicit family_id, else the switcher's selection"""
    if family_id is None:
        family_id = switcher.resolve(get_profile_family_ids(profile.id, supabase))
        if family_id is None:
            raise NoFamilySelected()
    return check_family_member(family_id, profile.id, supabase)


def require_family_permission(required_permission: str, active: bool = False):
    """Factory function to create a family role check dependency.

    With active=True the family comes from the query string / switcher instead of the path.
    """
    context_dependency = get_active_family_context if active else get_family_context

    def check_permission(context: FamilyContext = Depends(context_dependency)) -> FamilyContext:
        if not role_has_permission(context.role, required_permission):
            raise InsufficientFamilyRole(
                f"Insufficient family role. Required: {required_permission}"
            )
        return context
    return check_permission
