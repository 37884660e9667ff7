from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class FamilyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Family name is required")
        return value


class FamilyResponse(BaseModel):
    id: str
    name: str
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipSummary(BaseModel):
    family_id: str
    name: str
    role: str
    created_by_me: bool


class FamilyMemberResponse(BaseModel):
    id: str
    family_id: str
    profile_id: str
    role: str
    parent_id: Optional[str] = None
    joined_at: Optional[datetime] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class CoMemberResponse(BaseModel):
    id: str
    profile_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None


class InviteByEmailRequest(BaseModel):
    email: EmailStr


class SelectFamilyRequest(BaseModel):
    family_id: str


class SelectedFamilyResponse(BaseModel):
    family_id: Optional[str] = None
