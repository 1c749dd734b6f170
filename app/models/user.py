from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import relationship, Mapped, mapped_column
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.community import CommunityMember


class User(BaseModel):
    __tablename__ = "users"

    # Stored lower-cased; uniqueness is case-insensitive in practice
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default=None)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, default=None)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Password reset (only a SHA-256 digest of the emailed token is kept)
    reset_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, default=None, index=True
    )
    reset_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # Relationships
    memberships: Mapped[List["CommunityMember"]] = relationship(
        "CommunityMember",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="select"
    )
