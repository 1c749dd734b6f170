from sqlalchemy.orm import Session
from sqlalchemy import select, and_, or_
from typing import List, Optional
from app.models.question import BoardQuestion, BoardQuestionResponse
from app.repositories.repository import BaseRepository


class QuestionRepository(BaseRepository[BoardQuestion]):
    """Repository for board questions and their responses."""

    def __init__(self, db: Session):
        super().__init__(BoardQuestion, db)

    def get_community_question(
        self, community_id: int, question_id: int
    ) -> Optional[BoardQuestion]:
        """Get a question only if it belongs to the community."""
        return (
            self.db.query(BoardQuestion)
            .filter(
                and_(
                    BoardQuestion.id == question_id,
                    BoardQuestion.community_id == community_id,
                )
            )
            .first()
        )

    def get_for_board(self, community_id: int) -> List[BoardQuestion]:
        """Every question of the community, newest first."""
        stmt = (
            select(BoardQuestion)
            .where(BoardQuestion.community_id == community_id)
            .order_by(BoardQuestion.created_at.desc(), BoardQuestion.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_for_resident(self, community_id: int, user_id: int) -> List[BoardQuestion]:
        """The resident's own questions plus public ones, newest first."""
        stmt = (
            select(BoardQuestion)
            .where(
                and_(
                    BoardQuestion.community_id == community_id,
                    or_(
                        BoardQuestion.submitted_by_id == user_id,
                        BoardQuestion.is_public.is_(True),
                    ),
                )
            )
            .order_by(BoardQuestion.created_at.desc(), BoardQuestion.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def add_response(self, question: BoardQuestion, response: BoardQuestionResponse) -> BoardQuestionResponse:
        """Attach a response to a question and persist both."""
        question.responses.append(response)
        self._persist()
        self.db.refresh(response)
        return response
