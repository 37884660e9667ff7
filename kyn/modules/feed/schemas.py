from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


class ContentCreate(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Content cannot be empty")
        return value


class PostCreate(ContentCreate):
    pass


class CommentCreate(ContentCreate):
    pass


class Author(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: Optional[datetime] = None
    author: Optional[Author] = None


class PostResponse(BaseModel):
    id: str
    family_id: str
    author_id: str
    content: str
    created_at: Optional[datetime] = None
    author: Optional[Author] = None
    comments: List[CommentResponse] = []
