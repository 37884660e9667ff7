from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class MessageCreate(BaseModel):
    recipient_id: str
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class MessageResponse(BaseModel):
    id: str
    family_id: str
    sender_id: str
    recipient_id: str
    content: str
    created_at: Optional[datetime] = None
    sender_name: Optional[str] = None
