from app.models.base import Base, BaseModel
from app.models.user import User
from app.models.community import Community, CommunityMember, MemberRole, MembershipStatus
from app.models.poll import Poll, PollOption, PollVote, PollType, ResultsVisibility, PollState
from app.models.potluck import (
    PotluckEvent,
    PotluckSignup,
    SignupCategory,
    CATEGORY_LIMIT_FIELDS,
)
from app.models.suggestion import MeetingSuggestion, SuggestionUpvote, SuggestionStatus
from app.models.question import BoardQuestion, BoardQuestionResponse, QuestionStatus
from app.models.calendar_event import CalendarEvent, CalendarEventType

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # User
    "User",
    # Community
    "Community",
    "CommunityMember",
    "MemberRole",
    "MembershipStatus",
    # Poll
    "Poll",
    "PollOption",
    "PollVote",
    "PollType",
    "ResultsVisibility",
    "PollState",
    # Potluck
    "PotluckEvent",
    "PotluckSignup",
    "SignupCategory",
    "CATEGORY_LIMIT_FIELDS",
    # Suggestion
    "MeetingSuggestion",
    "SuggestionUpvote",
    "SuggestionStatus",
    # Question
    "BoardQuestion",
    "BoardQuestionResponse",
    "QuestionStatus",
    # Calendar
    "CalendarEvent",
    "CalendarEventType",
]
