from sqlalchemy import (
    String,
    Text,
    Boolean,
    Integer,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.community import Community
    from app.models.user import User


class PollType(str, enum.Enum):
    """How many options a voter may pick"""

    SINGLE = "single"
    MULTIPLE = "multiple"


class ResultsVisibility(str, enum.Enum):
    """When residents may see the tallies; the board always can"""

    ALWAYS = "always"
    AFTER_VOTE = "after_vote"
    AFTER_CLOSE = "after_close"


class PollState(str, enum.Enum):
    """Derived from the clock and the poll window; never stored"""

    NOT_YET_OPEN = "not_yet_open"
    OPEN = "open"
    CLOSED = "closed"


class Poll(BaseModel):
    """
    Community poll. Open between ``opens_at`` and ``closes_at``;
    there is no manual close, only the clock.
    """

    __tablename__ = "polls"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    poll_type: Mapped[PollType] = mapped_column(
        SQLEnum(PollType), default=PollType.SINGLE, nullable=False
    )
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    results_visible: Mapped[ResultsVisibility] = mapped_column(
        SQLEnum(ResultsVisibility), default=ResultsVisibility.AFTER_CLOSE, nullable=False
    )
    opens_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closes_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # Foreign keys
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    community: Mapped["Community"] = relationship("Community", back_populates="polls")
    created_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")
    options: Mapped[List["PollOption"]] = relationship(
        "PollOption",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="PollOption.display_order",
        lazy="selectin",
    )
    votes: Mapped[List["PollVote"]] = relationship(
        "PollVote", back_populates="poll", cascade="all, delete-orphan"
    )

    @property
    def creator_name(self) -> Optional[str]:
        return self.created_by.name if self.created_by else None


class PollOption(BaseModel):
    """One answer of a poll; the set is fixed when the poll is created."""

    __tablename__ = "poll_options"

    poll_id: Mapped[int] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_text: Mapped[str] = mapped_column(String(255), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    poll: Mapped["Poll"] = relationship("Poll", back_populates="options")
    votes: Mapped[List["PollVote"]] = relationship(
        "PollVote", back_populates="option", cascade="all, delete-orphan"
    )


class PollVote(BaseModel):
    """A user's selection of one option. Multiple-choice ballots are several rows."""

    __tablename__ = "poll_votes"
    __table_args__ = (
        UniqueConstraint("poll_id", "option_id", "user_id", name="uq_poll_vote_option_user"),
    )

    poll_id: Mapped[int] = mapped_column(
        ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id: Mapped[int] = mapped_column(
        ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    poll: Mapped["Poll"] = relationship("Poll", back_populates="votes")
    option: Mapped["PollOption"] = relationship("PollOption", back_populates="votes")
    user: Mapped["User"] = relationship("User", lazy="selectin")
