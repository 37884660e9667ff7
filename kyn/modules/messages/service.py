import logging
from supabase import Client
from kyn.modules.messages.schemas import MessageResponse
from kyn.modules.families.switcher import FamilyContext
from kyn.modules.profiles.service import ProfileService
from kyn.core.errors import OperationFailed, RecipientNotMember
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context
        self.profiles = ProfileService(supabase)

    def _require_co_member(self, recipient_id: str) -> None:
        if recipient_id == self.context.profile_id:
            raise RecipientNotMember("You cannot message yourself")
        result = self.supabase.table("family_members")\
            .select("id")\
            .eq("family_id", self.context.family_id)\
            .eq("profile_id", recipient_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise RecipientNotMember()

    def list_conversation(self, recipient_id: str) -> List[MessageResponse]:
        """Messages between the caller and recipient in this family, oldest first"""
        me = self.context.profile_id
        participants = [me, recipient_id]
        try:
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("family_id", self.context.family_id)\
                .in_("sender_id", participants)\
                .in_("recipient_id", participants)\
                .order("created_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching messages in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch messages")

        rows = [r for r in result.data or [] if r["sender_id"] != r["recipient_id"]]
        names = self.profiles.get_profiles_lite(participants)
        return [
            MessageResponse(
                **row,
                sender_name=names[row["sender_id"]].full_name if row["sender_id"] in names else None,
            )
            for row in rows
        ]

    def send_message(self, recipient_id: str, content: str) -> MessageResponse:
        try:
            self._require_co_member(recipient_id)
            result = self.supabase.table("messages").insert({
                "family_id": self.context.family_id,
                "sender_id": self.context.profile_id,
                "recipient_id": recipient_id,
                "content": content,
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to send message")
            return MessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error sending message in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to send message")
