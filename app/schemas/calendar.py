from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date, time, datetime

from app.models.calendar_event import CalendarEventType


class CalendarEventBase(BaseModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    event_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = Field(None, max_length=255)
    event_type: CalendarEventType = CalendarEventType.MEETING

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @model_validator(mode="after")
    def end_after_start(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("End time must not be before start time")
        return self


class CalendarEventCreate(CalendarEventBase):
    pass


class CalendarEventUpdate(CalendarEventBase):
    pass


class CalendarEventResponse(CalendarEventBase):
    id: int
    uuid: str
    community_id: int
    created_by_id: Optional[int] = None
    creator_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
