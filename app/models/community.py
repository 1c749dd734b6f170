from sqlalchemy import String, Text, ForeignKey, DateTime, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from app.models.base import Base, BaseModel

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.poll import Poll
    from app.models.potluck import PotluckEvent
    from app.models.suggestion import MeetingSuggestion
    from app.models.question import BoardQuestion
    from app.models.calendar_event import CalendarEvent


class MemberRole(str, enum.Enum):
    """Role of an accepted member inside a community"""

    ADMIN = "admin"
    BOARD_MEMBER = "board_member"
    RESIDENT = "resident"


class MembershipStatus(str, enum.Enum):
    """Join-request lifecycle; a rejected or departed member has no row at all"""

    PENDING = "pending"
    ACCEPTED = "accepted"


class Community(BaseModel):
    """
    Community (HOA) model - the tenant every feature is scoped to.
    Members join with the invite code and are accepted by an admin.
    """

    __tablename__ = "communities"

    # Basic info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    # Invitation code for join requests, stored upper-case
    invite_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    members: Mapped[List["CommunityMember"]] = relationship(
        "CommunityMember",
        back_populates="community",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    created_by: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[created_by_id], lazy="selectin"
    )

    # Community-owned content; removed together with the community
    polls: Mapped[List["Poll"]] = relationship(
        "Poll", back_populates="community", cascade="all, delete-orphan"
    )
    potluck_events: Mapped[List["PotluckEvent"]] = relationship(
        "PotluckEvent", back_populates="community", cascade="all, delete-orphan"
    )
    suggestions: Mapped[List["MeetingSuggestion"]] = relationship(
        "MeetingSuggestion", back_populates="community", cascade="all, delete-orphan"
    )
    questions: Mapped[List["BoardQuestion"]] = relationship(
        "BoardQuestion", back_populates="community", cascade="all, delete-orphan"
    )
    calendar_events: Mapped[List["CalendarEvent"]] = relationship(
        "CalendarEvent", back_populates="community", cascade="all, delete-orphan"
    )


class CommunityMember(Base):
    """Membership of a user in a community, keyed by (user, community)."""

    __tablename__ = "community_members"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    role: Mapped[MemberRole] = mapped_column(
        SQLEnum(MemberRole), default=MemberRole.RESIDENT, nullable=False
    )
    status: Mapped[MembershipStatus] = mapped_column(
        SQLEnum(MembershipStatus), default=MembershipStatus.PENDING, nullable=False, index=True
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships", lazy="selectin")
    community: Mapped["Community"] = relationship("Community", back_populates="members")

    @property
    def is_accepted(self) -> bool:
        return self.status == MembershipStatus.ACCEPTED

    def __repr__(self):
        return (
            f"<CommunityMember(community_id={self.community_id}, user_id={self.user_id}, "
            f"role='{self.role.value}', status='{self.status.value}')>"
        )
