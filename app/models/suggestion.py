from sqlalchemy import String, Text, ForeignKey, DateTime, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from app.models.base import Base, BaseModel
if TYPE_CHECKING:
    from app.models.community import Community
    from app.models.user import User


class SuggestionStatus(str, enum.Enum):
    """Board triage state of a meeting suggestion"""

    SUBMITTED = "submitted"
    ADDED_TO_AGENDA = "added_to_agenda"
    REVIEWED = "reviewed"
    DECLINED = "declined"


class MeetingSuggestion(BaseModel):
    """Agenda item proposed by a member and upvoted by the others."""

    __tablename__ = "meeting_suggestions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    status: Mapped[SuggestionStatus] = mapped_column(
        SQLEnum(SuggestionStatus), default=SuggestionStatus.SUBMITTED, nullable=False
    )

    # Foreign keys
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submitted_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status_updated_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    community: Mapped["Community"] = relationship("Community", back_populates="suggestions")
    submitted_by: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[submitted_by_id], lazy="selectin"
    )
    upvotes: Mapped[List["SuggestionUpvote"]] = relationship(
        "SuggestionUpvote", back_populates="suggestion", cascade="all, delete-orphan"
    )


class SuggestionUpvote(Base):
    """One upvote per (user, suggestion)."""

    __tablename__ = "suggestion_upvotes"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    suggestion_id: Mapped[int] = mapped_column(
        ForeignKey("meeting_suggestions.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    suggestion: Mapped["MeetingSuggestion"] = relationship(
        "MeetingSuggestion", back_populates="upvotes"
    )
