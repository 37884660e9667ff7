import logging
from supabase import Client
from kyn.modules.events.schemas import EventCreate, EventResponse, RsvpResponse
from kyn.modules.families.switcher import FamilyContext
from kyn.core.errors import EventNotFound, OperationFailed
from typing import Dict, List
from fastapi import HTTPException

logger = logging.getLogger(__name__)

RSVP_STATUSES = ("yes", "no", "maybe")


class EventService:
    def __init__(self, supabase: Client, context: FamilyContext):
        self.supabase = supabase
        self.context = context

    def list_events(self) -> List[EventResponse]:
        """Upcoming and past events, soonest first, with RSVP tallies and the caller's answer"""
        try:
            events_result = self.supabase.table("events")\
                .select("*")\
                .eq("family_id", self.context.family_id)\
                .order("event_date")\
                .execute()
            events = events_result.data or []
            if not events:
                return []
            rsvps_result = self.supabase.table("event_rsvps")\
                .select("event_id, profile_id, status")\
                .in_("event_id", [e["id"] for e in events])\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching events for family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to fetch events")

        counts: Dict[str, Dict[str, int]] = {}
        mine: Dict[str, str] = {}
        for rsvp in rsvps_result.data or []:
            tally = counts.setdefault(rsvp["event_id"], dict.fromkeys(RSVP_STATUSES, 0))
            tally[rsvp["status"]] = tally.get(rsvp["status"], 0) + 1
            if rsvp["profile_id"] == self.context.profile_id:
                mine[rsvp["event_id"]] = rsvp["status"]

        return [
            EventResponse(
                **event,
                my_rsvp=mine.get(event["id"]),
                rsvp_counts=counts.get(event["id"], dict.fromkeys(RSVP_STATUSES, 0)),
            )
            for event in events
        ]

    def create_event(self, event: EventCreate) -> EventResponse:
        try:
            result = self.supabase.table("events").insert({
                "family_id": self.context.family_id,
                "created_by": self.context.profile_id,
                "title": event.title,
                "description": event.description or None,
                "location": event.location or None,
                "event_date": event.event_date.isoformat(),
            }).execute()
            if not result.data:
                raise OperationFailed("Failed to create event")
            logger.info(f"Event {result.data[0]['id']} created in family {self.context.family_id}")
            return EventResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating event in family {self.context.family_id}: {e}")
            raise OperationFailed("Failed to create event")

    def rsvp(self, event_id: str, status: str) -> RsvpResponse:
        """Record or change the caller's answer; (event, profile) is unique so this upserts"""
        try:
            event = self.supabase.table("events")\
                .select("id")\
                .eq("id", event_id)\
                .eq("family_id", self.context.family_id)\
                .limit(1)\
                .execute()
            if not event.data:
                raise EventNotFound()

            result = self.supabase.table("event_rsvps").upsert({
                "event_id": event_id,
                "family_id": self.context.family_id,
                "profile_id": self.context.profile_id,
                "status": status,
            }, on_conflict="event_id,profile_id").execute()
            if not result.data:
                raise OperationFailed("Failed to RSVP")
            return RsvpResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving RSVP for event {event_id}: {e}")
            raise OperationFailed("Failed to RSVP")
