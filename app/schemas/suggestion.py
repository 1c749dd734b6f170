from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from app.models.suggestion import SuggestionStatus


class SuggestionBase(BaseModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class SuggestionCreate(SuggestionBase):
    pass


class SuggestionUpdate(SuggestionBase):
    pass


class SuggestionStatusUpdate(BaseModel):
    status: SuggestionStatus


class UpvoteResponse(BaseModel):
    upvoted: bool
    upvote_count: int


class SuggestionResponse(SuggestionBase):
    id: int
    uuid: str
    community_id: int
    status: SuggestionStatus
    submitted_by_id: Optional[int] = None
    submitter_name: Optional[str] = None
    status_updated_by_id: Optional[int] = None
    upvote_count: int = 0
    user_upvoted: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None
