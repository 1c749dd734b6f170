from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.models.poll import PollState, PollType, ResultsVisibility


class PollCreate(BaseModel):
    """Schema for creating a poll together with its options."""
    question: str = Field(..., max_length=1000)
    description: Optional[str] = Field(None, max_length=2000)
    poll_type: PollType = PollType.SINGLE
    is_anonymous: bool = False
    results_visible: ResultsVisibility = ResultsVisibility.AFTER_CLOSE
    opens_at: Optional[datetime] = Field(None, description="Defaults to now")
    closes_at: Optional[datetime] = Field(None, description="Open-ended when omitted")
    options: List[str] = Field(..., description="At least two option texts, in display order")

    @field_validator("question")
    @classmethod
    def question_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Question is required")
        return value

    @field_validator("options")
    @classmethod
    def at_least_two_options(cls, value: List[str]) -> List[str]:
        options = [option.strip() for option in value if option and option.strip()]
        if len(options) < 2:
            raise ValueError("At least 2 options are required")
        for option in options:
            if len(option) > 255:
                raise ValueError("Options must be at most 255 characters")
        return options


class PollUpdate(BaseModel):
    """Poll fields that can change after creation. Options are fixed."""
    question: Optional[str] = Field(None, max_length=1000)
    description: Optional[str] = Field(None, max_length=2000)
    poll_type: Optional[PollType] = None
    is_anonymous: Optional[bool] = None
    results_visible: Optional[ResultsVisibility] = None
    opens_at: Optional[datetime] = None
    closes_at: Optional[datetime] = None

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Question is required")
        return value


class VoteRequest(BaseModel):
    option_ids: List[int] = Field(..., description="Selected option ids; replaces any earlier vote")


class VoteResponse(BaseModel):
    message: str
    option_ids: List[int]


class PollOptionResponse(BaseModel):
    id: int
    option_text: str
    display_order: int

    class Config:
        from_attributes = True


class VoterResponse(BaseModel):
    id: int
    name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class OptionResult(BaseModel):
    id: int
    option_text: str
    display_order: int
    vote_count: int
    percentage: int
    voters: Optional[List[VoterResponse]] = None


class PollResults(BaseModel):
    total_votes: int
    participation_count: int
    options: List[OptionResult]


class PollSummaryResponse(BaseModel):
    """Poll as shown in the community list."""
    id: int
    uuid: str
    question: str
    description: Optional[str] = None
    poll_type: PollType
    is_anonymous: bool
    results_visible: ResultsVisibility
    opens_at: datetime
    closes_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    creator_name: Optional[str] = None
    created_at: datetime
    state: PollState
    vote_count: int = Field(0, description="Distinct users who voted")


class PollDetailResponse(PollSummaryResponse):
    options: List[PollOptionResponse]
    user_votes: List[int]
    has_voted: bool
    can_see_results: bool
    results: Optional[PollResults] = None
    seconds_remaining: Optional[int] = None


class PollResponse(BaseModel):
    """Poll as returned by create/update."""
    id: int
    uuid: str
    community_id: int
    question: str
    description: Optional[str] = None
    poll_type: PollType
    is_anonymous: bool
    results_visible: ResultsVisibility
    opens_at: datetime
    closes_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    options: List[PollOptionResponse]

    class Config:
        from_attributes = True
