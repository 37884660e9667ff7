import logging
from datetime import datetime, timezone
from supabase import Client
from kyn.modules.profiles.schemas import OnboardingRequest, ProfileUpdate, ProfileResponse, ProfileLite
from kyn.core.errors import ProfileNotFound, OperationFailed
from typing import Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_by_user_id(self, user_id: str) -> ProfileResponse:
        """Resolve the one profile for an auth account; ProfileNotFound if onboarding never happened"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error resolving profile for user {user_id}: {e}")
            raise OperationFailed("Could not load profile")

        if not result.data:
            raise ProfileNotFound()
        return ProfileResponse(**result.data[0])

    def find_by_user_id(self, user_id: str) -> Optional[ProfileResponse]:
        try:
            return self.get_by_user_id(user_id)
        except ProfileNotFound:
            return None

    def get_by_email(self, email: str) -> Optional[ProfileResponse]:
        """Get profile by email (case-insensitive, emails are stored lower-cased)"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("email", email.strip().lower())\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error looking up profile by email: {e}")
            raise OperationFailed("Could not look up user")

        if not result.data:
            return None
        return ProfileResponse(**result.data[0])

    def onboard(self, user_data: Dict, onboarding: OnboardingRequest) -> ProfileResponse:
        """Create or refresh the caller's profile"""
        try:
            email = user_data.get("email")
            result = self.supabase.table("profiles").upsert({
                "user_id": user_data["id"],
                "email": email.lower() if email else None,
                "full_name": onboarding.full_name,
                "avatar_url": onboarding.avatar_url or None,
            }, on_conflict="user_id").execute()

            if not result.data:
                raise OperationFailed("Failed to save profile")

            logger.info(f"Onboarded profile {result.data[0]['id']} for user {user_data['id']}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error onboarding user {user_data.get('id')}: {e}")
            raise OperationFailed("Failed to save profile")

    def update_profile(self, profile_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update full name / avatar"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if profile_data.full_name is not None:
                update_data["full_name"] = profile_data.full_name
            if profile_data.avatar_url is not None:
                update_data["avatar_url"] = profile_data.avatar_url or None

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", profile_id)\
                .execute()

            if not result.data:
                raise ProfileNotFound()

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile {profile_id}: {e}")
            raise OperationFailed("Failed to update profile")

    def get_profiles_lite(self, profile_ids: List[str]) -> Dict[str, ProfileLite]:
        """Name/avatar/email projections keyed by profile id"""
        if not profile_ids:
            return {}
        try:
            result = self.supabase.table("profiles")\
                .select("id, full_name, avatar_url, email")\
                .in_("id", list(set(profile_ids)))\
                .execute()
        except Exception as e:
            logger.error(f"Error loading profiles: {e}")
            raise OperationFailed("Could not load profiles")
        return {p["id"]: ProfileLite(**p) for p in result.data or []}
