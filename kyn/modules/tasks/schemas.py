from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=2)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Task title required")
        return value


class TaskResponse(BaseModel):
    id: str
    family_id: str
    title: str
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    assignee_name: Optional[str] = None
    due_date: Optional[date] = None
    completed: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
