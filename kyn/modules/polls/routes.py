from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.polls.schemas import PollCreate, PollResponse, VoteRequest, VoteResponse
from kyn.modules.polls.service import PollService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/polls", tags=["polls"])


@router.get("", response_model=List[PollResponse])
async def list_polls(
    context: FamilyContext = Depends(require_family_permission("polls:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return PollService(supabase, context).list_polls()


@router.post("", response_model=PollResponse, status_code=201)
async def create_poll(
    poll: PollCreate,
    context: FamilyContext = Depends(require_family_permission("polls:create", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Create a poll with 2 to 6 options"""
    return PollService(supabase, context).create_poll(poll)


@router.put("/{poll_id}/vote", response_model=VoteResponse)
async def vote(
    poll_id: str,
    request: VoteRequest,
    context: FamilyContext = Depends(require_family_permission("polls:vote", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return PollService(supabase, context).vote(poll_id, request.option_index)
