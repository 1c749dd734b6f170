from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, time, datetime

from app.models.potluck import SignupCategory


def _required(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


class PotluckEventBase(BaseModel):
    title: str = Field(..., max_length=255)
    theme: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    event_date: date
    event_time: Optional[time] = None
    location: Optional[str] = Field(None, max_length=255)
    max_appetizers: Optional[int] = Field(None, ge=0)
    max_sides: Optional[int] = Field(None, ge=0)
    max_mains: Optional[int] = Field(None, ge=0)
    max_desserts: Optional[int] = Field(None, ge=0)
    max_drinks: Optional[int] = Field(None, ge=0)
    max_other: Optional[int] = Field(None, ge=0)

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        return _required(value, "Title")

    @field_validator(
        "max_appetizers", "max_sides", "max_mains", "max_desserts", "max_drinks", "max_other"
    )
    @classmethod
    def zero_means_unlimited(cls, value: Optional[int]) -> Optional[int]:
        return value or None


class PotluckEventCreate(PotluckEventBase):
    pass


class PotluckEventUpdate(PotluckEventBase):
    """Full replacement of the event fields; title and date stay required."""
    pass


class PotluckSignupBase(BaseModel):
    dish_name: str = Field(..., max_length=255)
    category: SignupCategory
    notes: Optional[str] = None

    @field_validator("dish_name")
    @classmethod
    def dish_name_required(cls, value: str) -> str:
        return _required(value, "Dish name")


class PotluckSignupCreate(PotluckSignupBase):
    pass


class PotluckSignupUpdate(PotluckSignupBase):
    pass


class PotluckSignupResponse(PotluckSignupBase):
    id: int
    potluck_event_id: int
    user_id: int
    user_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PotluckEventResponse(PotluckEventBase):
    id: int
    uuid: str
    community_id: int
    created_by_id: Optional[int] = None
    creator_name: Optional[str] = None
    signup_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class PotluckEventDetailResponse(PotluckEventResponse):
    signups: List[PotluckSignupResponse] = []
