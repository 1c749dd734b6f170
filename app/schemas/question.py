from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.models.question import QuestionStatus


class QuestionCreate(BaseModel):
    title: str = Field(..., max_length=255)
    message: str

    @field_validator("title", "message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title and message are required")
        return value


class ResponseCreate(BaseModel):
    message: str
    is_public: bool = False

    @field_validator("message")
    @classmethod
    def message_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message is required")
        return value


class VisibilityUpdate(BaseModel):
    is_public: bool


class QuestionResponseOut(BaseModel):
    id: int
    question_id: int
    message: str
    is_public: bool
    responded_by_id: Optional[int] = None
    responder_name: Optional[str] = None
    responder_avatar: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuestionOut(BaseModel):
    id: int
    uuid: str
    community_id: int
    title: str
    message: str
    is_public: bool
    status: QuestionStatus
    submitted_by_id: Optional[int] = None
    submitter_name: Optional[str] = None
    submitter_avatar: Optional[str] = None
    response_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class QuestionDetailOut(QuestionOut):
    responses: List[QuestionResponseOut] = []
