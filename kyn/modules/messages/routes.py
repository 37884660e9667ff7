from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.messages.schemas import MessageCreate, MessageResponse
from kyn.modules.messages.service import MessageService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{recipient_id}", response_model=List[MessageResponse])
async def list_conversation(
    recipient_id: str,
    context: FamilyContext = Depends(require_family_permission("messages:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Conversation with one family member"""
    return MessageService(supabase, context).list_conversation(recipient_id)


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    message: MessageCreate,
    context: FamilyContext = Depends(require_family_permission("messages:send", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return MessageService(supabase, context).send_message(message.recipient_id, message.content)
