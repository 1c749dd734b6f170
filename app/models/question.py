from sqlalchemy import String, Text, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
import enum
from app.models.base import BaseModel
if TYPE_CHECKING:
    from app.models.community import Community
    from app.models.user import User


class QuestionStatus(str, enum.Enum):
    PENDING = "pending"
    ANSWERED = "answered"


class BoardQuestion(BaseModel):
    """
    Question a member sends to the board.
    Private to the asker and the board until made public.
    """

    __tablename__ = "board_questions"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[QuestionStatus] = mapped_column(
        SQLEnum(QuestionStatus), default=QuestionStatus.PENDING, nullable=False
    )

    # Foreign keys
    community_id: Mapped[int] = mapped_column(
        ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submitted_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships
    community: Mapped["Community"] = relationship("Community", back_populates="questions")
    submitted_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")
    responses: Mapped[List["BoardQuestionResponse"]] = relationship(
        "BoardQuestionResponse",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="BoardQuestionResponse.id",
        lazy="selectin",
    )

    @property
    def submitter_name(self) -> Optional[str]:
        return self.submitted_by.name if self.submitted_by else None

    @property
    def submitter_avatar(self) -> Optional[str]:
        return self.submitted_by.avatar_url if self.submitted_by else None

    @property
    def response_count(self) -> int:
        return len(self.responses)


class BoardQuestionResponse(BaseModel):
    """Board answer to a question."""

    __tablename__ = "board_question_responses"

    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    question_id: Mapped[int] = mapped_column(
        ForeignKey("board_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    responded_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    question: Mapped["BoardQuestion"] = relationship("BoardQuestion", back_populates="responses")
    responded_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    @property
    def responder_name(self) -> Optional[str]:
        return self.responded_by.name if self.responded_by else None

    @property
    def responder_avatar(self) -> Optional[str]:
        return self.responded_by.avatar_url if self.responded_by else None
