import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from kyn.config import settings
from kyn.core.errors import (
    AlreadyMember, InvalidInvite, InvalidInviteLink, InvalidOrExpiredInvite,
    InviteExpired, MultipleFamiliesFound, OperationFailed
)
from kyn.database.supabase_client import is_raised_error, is_unique_violation
from kyn.modules.families.service import FamilyService, first_row
from kyn.modules.invites.links import build_invite_link, parse_invite_link
from kyn.modules.invites.schemas import (
    FamilyInviteRecord, InvitePasswordResponse, InviteTokenResponse, JoinResponse
)

logger = logging.getLogger(__name__)

# Same alphabet nanoid uses, so generated values stay URL-safe
INVITE_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_secret(length: int) -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InviteService:
    def __init__(self, supabase: Client, clock: Callable[[], datetime] = None):
        self.supabase = supabase
        self.families = FamilyService(supabase)
        self.clock = clock or utcnow

    def generate_password(self, family_id: str) -> InvitePasswordResponse:
        """Set (or replace) the family's multi-use invite password"""
        password = generate_secret(settings.invite_password_length)
        try:
            result = self.supabase.table("families")\
                .update({"invite_password": password})\
                .eq("id", family_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error setting invite password for {family_id}: {e}")
            raise OperationFailed("Failed to set invite password")
        if not result.data:
            raise OperationFailed("Failed to set invite password")

        logger.info(f"Invite password regenerated for family {family_id}")
        return InvitePasswordResponse(family_id=family_id, invite_password=password)

    def generate_invite_token(self, family_id: str, created_by: Optional[str] = None) -> InviteTokenResponse:
        """Create a single-use invite that expires after the configured TTL"""
        token = generate_secret(settings.invite_token_length)
        expires_at = self.clock() + timedelta(minutes=settings.invite_token_ttl_minutes)
        try:
            result = self.supabase.table("family_invites").insert({
                "family_id": family_id,
                "token": token,
                "expires_at": expires_at.isoformat(),
                "used": False,
                "created_by": created_by,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating invite for {family_id}: {e}")
            raise OperationFailed("Failed to create invite")
        if not result.data:
            raise OperationFailed("Failed to create invite")

        logger.info(f"Invite token created for family {family_id}, expires {expires_at.isoformat()}")
        return InviteTokenResponse(
            family_id=family_id,
            token=token,
            expires_at=expires_at,
            url=build_invite_link(settings.app_origin, family_id, token),
        )

    def join_family(self, profile_id: str, method: str, value: str,
                    memberships: List[Dict] = None) -> JoinResponse:
        """Join a family by invite password or invite token.

        memberships are the caller's family_members rows, used to reject a
        repeated join before anything is written.
        """
        if memberships is None:
            memberships = self._load_memberships(profile_id)
        member_of = {m["family_id"] for m in memberships}

        if method == "password":
            family_id = self._find_family_by_password(value)
            if family_id in member_of:
                raise AlreadyMember()
            member = self.families.add_member(family_id, profile_id)
            return JoinResponse(family_id=family_id, role=member.role)

        if method == "token":
            invite = self._find_redeemable_invite(value)
            if invite.family_id in member_of:
                raise AlreadyMember()
            return self._redeem(invite, profile_id)

        raise InvalidInvite()

    def join_by_link(self, profile_id: str, url: str, memberships: List[Dict] = None) -> JoinResponse:
        family_id, token = parse_invite_link(url)
        invite = self._find_redeemable_invite(token)
        if invite.family_id != family_id:
            raise InvalidInviteLink("Invite link does not match its family")
        if memberships is None:
            memberships = self._load_memberships(profile_id)
        if invite.family_id in {m["family_id"] for m in memberships}:
            raise AlreadyMember()
        return self._redeem(invite, profile_id)

    def _load_memberships(self, profile_id: str) -> List[Dict]:
        try:
            result = self.supabase.table("family_members")\
                .select("id, family_id")\
                .eq("profile_id", profile_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading memberships for {profile_id}: {e}")
            raise OperationFailed("Could not check family membership")
        return result.data or []

    def _find_family_by_password(self, password: str) -> str:
        try:
            result = self.supabase.table("families")\
                .select("id")\
                .eq("invite_password", password)\
                .execute()
        except Exception as e:
            logger.error(f"Error looking up invite password: {e}")
            raise OperationFailed("Could not check invite")

        families = result.data or []
        if not families:
            raise InvalidInvite()
        if len(families) > 1:
            logger.warning(f"Invite password shared by {len(families)} families")
            raise MultipleFamiliesFound()
        return families[0]["id"]

    def _find_redeemable_invite(self, token: str) -> FamilyInviteRecord:
        """Expiry is checked before the used flag, so an expired token always reports InviteExpired"""
        try:
            result = self.supabase.table("family_invites")\
                .select("id, family_id, token, expires_at, used, created_by")\
                .eq("token", token)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error looking up invite token: {e}")
            raise OperationFailed("Could not check invite")

        if not result.data:
            raise InvalidOrExpiredInvite()
        invite = FamilyInviteRecord(**result.data[0])
        if as_utc(invite.expires_at) <= self.clock():
            raise InviteExpired()
        if invite.used:
            raise InvalidOrExpiredInvite()
        return invite

    def _redeem(self, invite: FamilyInviteRecord, profile_id: str) -> JoinResponse:
        """Consume the invite and add the member atomically"""
        try:
            result = self.supabase.rpc("redeem_family_invite", {
                "p_invite_id": invite.id,
                "p_profile_id": profile_id,
            }).execute()
            member = first_row(result.data)
            if not member:
                raise OperationFailed("Failed to join family. Please try again.")
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise AlreadyMember()
            if is_raised_error(e, "invite_unavailable"):
                raise InvalidOrExpiredInvite()
            logger.error(f"Error redeeming invite {invite.id} for {profile_id}: {e}")
            raise OperationFailed("Failed to join family. Please try again.")

        logger.info(f"Profile {profile_id} joined family {invite.family_id} with invite {invite.id}")
        return JoinResponse(family_id=invite.family_id, role=member.get("role", "member"))
