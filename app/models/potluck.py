from sqlalchemy import String, Text, Date, Time, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import date, time
import enum
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.community import Community
    from app.models.user import User


class SignupCategory(str, enum.Enum):
    """Dish categories a potluck signup can fall into"""

    APPETIZER = "appetizer"
    SIDE = "side"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"
    OTHER = "other"


# Category -> PotluckEvent column holding its signup limit
CATEGORY_LIMIT_FIELDS = {
    SignupCategory.APPETIZER: "max_appetizers",
    SignupCategory.SIDE: "max_sides",
    SignupCategory.MAIN: "max_mains",
    SignupCategory.DESSERT: "max_desserts",
    SignupCategory.DRINK: "max_drinks",
    SignupCategory.OTHER: "max_other",
}


class PotluckEvent(BaseModel):
    """
    Potluck organised by the community admin.
    Each ``max_*`` column caps the signups of one category; NULL means unlimited.
    """

    __tablename__ = "potluck_events"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    theme: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    event_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True, default=None)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

    # Category limits
    max_appetizers: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    max_sides: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    max_mains: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    max_desserts: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    max_drinks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    max_other: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)

    # Foreign keys
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    community: Mapped["Community"] = relationship("Community", back_populates="potluck_events")
    created_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")
    signups: Mapped[List["PotluckSignup"]] = relationship(
        "PotluckSignup",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="PotluckSignup.id",
        lazy="selectin",
    )

    def limit_for(self, category: SignupCategory) -> Optional[int]:
        """Signup cap for a category; None or 0 means unlimited."""
        return getattr(self, CATEGORY_LIMIT_FIELDS[category])

    @property
    def creator_name(self) -> Optional[str]:
        return self.created_by.name if self.created_by else None

    @property
    def signup_count(self) -> int:
        return len(self.signups)


class PotluckSignup(BaseModel):
    """A dish a member brings to a potluck."""

    __tablename__ = "potluck_signups"

    dish_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[SignupCategory] = mapped_column(
        SQLEnum(SignupCategory), nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    # Foreign keys
    potluck_event_id: Mapped[int] = mapped_column(
        ForeignKey("potluck_events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    event: Mapped["PotluckEvent"] = relationship("PotluckEvent", back_populates="signups")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def user_name(self) -> Optional[str]:
        return self.user.name if self.user else None

    @property
    def avatar_url(self) -> Optional[str]:
        return self.user.avatar_url if self.user else None
