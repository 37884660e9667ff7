from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class QuestionCreate(BaseModel):
    question: str = Field(..., min_length=5)
    answer: str = Field(..., min_length=1)

    @field_validator("question", "answer")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Value cannot be empty")
        return value


class TriviaQuestionResponse(BaseModel):
    id: str
    family_id: str
    question: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class AnswerRequest(BaseModel):
    answer: str = Field(..., min_length=1)


class AnswerResult(BaseModel):
    correct: bool
    score: Optional[int] = None


class LeaderboardEntry(BaseModel):
    profile_id: str
    score: int
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
