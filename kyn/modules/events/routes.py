from fastapi import APIRouter, Depends
from kyn.database.supabase_client import get_supabase
from kyn.modules.events.schemas import EventCreate, EventResponse, RsvpRequest, RsvpResponse
from kyn.modules.events.service import EventService
from kyn.modules.families.switcher import FamilyContext
from kyn.core.dependencies import require_family_permission
from supabase import Client
from typing import List

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=List[EventResponse])
async def list_events(
    context: FamilyContext = Depends(require_family_permission("events:read", active=True)),
    supabase: Client = Depends(get_supabase)
):
    """Family calendar, soonest first"""
    return EventService(supabase, context).list_events()


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    event: EventCreate,
    context: FamilyContext = Depends(require_family_permission("events:create", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return EventService(supabase, context).create_event(event)


@router.put("/{event_id}/rsvp", response_model=RsvpResponse)
async def rsvp(
    event_id: str,
    request: RsvpRequest,
    context: FamilyContext = Depends(require_family_permission("events:rsvp", active=True)),
    supabase: Client = Depends(get_supabase)
):
    return EventService(supabase, context).rsvp(event_id, request.status)
