from pydantic import BaseModel, Field, field_validator
from typing import Dict, Literal, Optional
from datetime import datetime

RsvpStatus = Literal["yes", "no", "maybe"]


class EventCreate(BaseModel):
    title: str = Field(..., min_length=2)
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: datetime

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Event title required")
        return value


class EventResponse(BaseModel):
    id: str
    family_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: datetime
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    my_rsvp: Optional[RsvpStatus] = None
    rsvp_counts: Dict[str, int] = {}


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpResponse(BaseModel):
    event_id: str
    profile_id: str
    status: RsvpStatus
