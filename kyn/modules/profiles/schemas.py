from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class OnboardingRequest(BaseModel):
    full_name: str = Field(..., min_length=1)
    avatar_url: Optional[str] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    avatar_url: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileLite(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
