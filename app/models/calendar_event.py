from sqlalchemy import String, Text, Date, Time, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
from datetime import date, time
import enum
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.community import Community
    from app.models.user import User


class CalendarEventType(str, enum.Enum):
    """Kinds of entries on the community calendar"""

    MEETING = "meeting"
    SOCIAL = "social"
    MAINTENANCE = "maintenance"
    DEADLINE = "deadline"
    OTHER = "other"


class CalendarEvent(BaseModel):
    """Entry on the shared community calendar, maintained by the board."""

    __tablename__ = "calendar_events"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True, default=None)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True, default=None)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)
    event_type: Mapped[CalendarEventType] = mapped_column(
        SQLEnum(CalendarEventType), default=CalendarEventType.MEETING, nullable=False
    )

    # Foreign keys
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    community: Mapped["Community"] = relationship("Community", back_populates="calendar_events")
    created_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    @property
    def creator_name(self) -> Optional[str]:
        return self.created_by.name if self.created_by else None
