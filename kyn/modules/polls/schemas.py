from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

MAX_OPTIONS = 6


class PollCreate(BaseModel):
    question: str = Field(..., min_length=2)
    options: List[str] = Field(..., min_length=2, max_length=MAX_OPTIONS)

    @field_validator("question")
    @classmethod
    def strip_question(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Question required")
        return value

    @field_validator("options")
    @classmethod
    def non_empty_options(cls, value: List[str]) -> List[str]:
        options = [o.strip() for o in value]
        if any(not o for o in options):
            raise ValueError("Option cannot be empty")
        return options


class PollResponse(BaseModel):
    id: str
    family_id: str
    question: str
    options: List[str]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    vote_counts: List[int] = []
    my_vote: Optional[int] = None


class VoteRequest(BaseModel):
    option_index: int = Field(..., ge=0)


class VoteResponse(BaseModel):
    poll_id: str
    profile_id: str
    option_index: int
