from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class InvitePasswordResponse(BaseModel):
    family_id: str
    invite_password: str


class InviteTokenResponse(BaseModel):
    family_id: str
    token: str
    expires_at: datetime
    url: str


class FamilyInviteRecord(BaseModel):
    id: str
    family_id: str
    token: str
    expires_at: datetime
    used: bool = False
    created_by: Optional[str] = None


class JoinRequest(BaseModel):
    method: Literal["password", "token"]
    value: str = Field(..., min_length=1)


class JoinLinkRequest(BaseModel):
    url: str = Field(..., min_length=1)


class JoinResponse(BaseModel):
    success: bool = True
    family_id: str
    role: str = "member"
