import logging
from supabase import Client
from kyn.modules.families.schemas import (
    FamilyResponse, MembershipSummary, FamilyMemberResponse, CoMemberResponse
)
from kyn.modules.profiles.service import ProfileService
from kyn.database.supabase_client import is_unique_violation
from kyn.core.errors import (
    AlreadyCreatedFamily, DuplicateFamilyName, AlreadyMember, UserNotFound,
    FamilyNotFound, OperationFailed
)
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def first_row(data):
    """rpc() returns a list for setof functions and a dict for scalar composites"""
    if isinstance(data, list):
        return data[0] if data else None
    return data


class FamilyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def create_family(self, name: str, profile_id: str) -> FamilyResponse:
        """Create a family with the caller as its admin.

        The lookups below only give a friendly early answer; the unique
        constraints on families are what actually enforce one family per
        creator, and the stored procedure writes family and admin membership
        together.
        """
        try:
            created = self.supabase.table("families")\
                .select("id")\
                .eq("created_by", profile_id)\
                .execute()
            if created.data:
                raise AlreadyCreatedFamily()

            same_name = self.supabase.table("families")\
                .select("id")\
                .eq("name", name)\
                .eq("created_by", profile_id)\
                .execute()
            if same_name.data:
                raise DuplicateFamilyName()

            result = self.supabase.rpc("create_family_with_admin", {
                "p_name": name,
                "p_creator_id": profile_id,
            }).execute()

            family = first_row(result.data)
            if not family:
                raise OperationFailed("Failed to create family")

            logger.info(f"Profile {profile_id} created family {family['id']}")
            return FamilyResponse(**family)
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e, "families_created_by_name_key"):
                raise DuplicateFamilyName()
            if is_unique_violation(e):
                raise AlreadyCreatedFamily()
            logger.error(f"Error creating family for {profile_id}: {e}")
            raise OperationFailed("Failed to create family")

    def get_family(self, family_id: str) -> FamilyResponse:
        try:
            result = self.supabase.table("families")\
                .select("id, name, created_by, created_at")\
                .eq("id", family_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading family {family_id}: {e}")
            raise OperationFailed("Could not load family")
        if not result.data:
            raise FamilyNotFound()
        return FamilyResponse(**result.data[0])

    def list_memberships(self, profile_id: str) -> List[MembershipSummary]:
        """All families the profile belongs to, with role and whether they created it"""
        try:
            members_result = self.supabase.table("family_members")\
                .select("family_id, role, joined_at")\
                .eq("profile_id", profile_id)\
                .order("joined_at")\
                .execute()
            memberships = members_result.data or []
            if not memberships:
                return []

            family_ids = [m["family_id"] for m in memberships]
            families_result = self.supabase.table("families")\
                .select("id, name, created_by")\
                .in_("id", family_ids)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing memberships for {profile_id}: {e}")
            raise OperationFailed("Could not load families")

        families = {f["id"]: f for f in families_result.data or []}
        summaries = []
        for membership in memberships:
            family = families.get(membership["family_id"])
            if family is None:
                continue
            summaries.append(MembershipSummary(
                family_id=family["id"],
                name=family["name"],
                role=membership.get("role") or "member",
                created_by_me=family["created_by"] == profile_id,
            ))
        return summaries

    def list_members(self, family_id: str) -> List[FamilyMemberResponse]:
        """All memberships of a family with profile name and avatar"""
        try:
            result = self.supabase.table("family_members")\
                .select("id, family_id, profile_id, role, parent_id, joined_at")\
                .eq("family_id", family_id)\
                .order("joined_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error listing members of {family_id}: {e}")
            raise OperationFailed("Could not load family members")

        rows = result.data or []
        profiles = self.profiles.get_profiles_lite([r["profile_id"] for r in rows])
        members = []
        for row in rows:
            profile = profiles.get(row["profile_id"])
            members.append(FamilyMemberResponse(
                **row,
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
            ))
        return members

    def list_co_members(self, family_id: str, exclude_profile_id: str) -> List[CoMemberResponse]:
        """Other members of the family, for recipient pickers"""
        try:
            result = self.supabase.table("family_members")\
                .select("id, profile_id")\
                .eq("family_id", family_id)\
                .neq("profile_id", exclude_profile_id)\
                .order("joined_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error listing co-members of {family_id}: {e}")
            raise OperationFailed("Could not load family members")

        rows = result.data or []
        profiles = self.profiles.get_profiles_lite([r["profile_id"] for r in rows])
        co_members = []
        for row in rows:
            profile = profiles.get(row["profile_id"])
            co_members.append(CoMemberResponse(
                id=row["id"],
                profile_id=row["profile_id"],
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
                email=profile.email if profile else None,
            ))
        return co_members

    def add_member(self, family_id: str, profile_id: str, role: str = "member") -> FamilyMemberResponse:
        """Insert a membership; the (family, profile) unique constraint rejects duplicates"""
        try:
            result = self.supabase.table("family_members").insert({
                "family_id": family_id,
                "profile_id": profile_id,
                "role": role,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to add member")
            logger.info(f"Profile {profile_id} added to family {family_id} as {role}")
            return FamilyMemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise AlreadyMember()
            logger.error(f"Error adding {profile_id} to family {family_id}: {e}")
            raise OperationFailed("Failed to add member")

    def invite_by_email(self, family_id: str, email: str) -> FamilyMemberResponse:
        """Add an onboarded profile to the family directly, looked up by email"""
        profile = self.profiles.get_by_email(email)
        if profile is None:
            raise UserNotFound()

        try:
            existing = self.supabase.table("family_members")\
                .select("id")\
                .eq("family_id", family_id)\
                .eq("profile_id", profile.id)\
                .execute()
        except Exception as e:
            logger.error(f"Error checking membership of {profile.id} in {family_id}: {e}")
            raise OperationFailed("Failed to check membership")
        if existing.data:
            raise AlreadyMember("User is already a member")

        try:
            return self.add_member(family_id, profile.id)
        except AlreadyMember:
            raise AlreadyMember("User is already a member")
