import logging
from sqlalchemy.orm import Session
from typing import List
from app.core.exception import ResourceNotFoundException, AuthorizationException
from app.core.permissions import AuthorizationContext, Operation, authorize
from app.database import transaction
from app.models.question import BoardQuestion, BoardQuestionResponse, QuestionStatus
from app.repositories.question_repository import QuestionRepository
from app.schemas.question import QuestionCreate, ResponseCreate

logger = logging.getLogger(__name__)


class QuestionService:
    """Questions members send to the board, and the board's answers."""

    def __init__(self, db: Session):
        self.db = db
        self.question_repo = QuestionRepository(db)

    def _get_question(self, ctx: AuthorizationContext, question_id: int) -> BoardQuestion:
        question = self.question_repo.get_community_question(ctx.community_id, question_id)
        if not question:
            raise ResourceNotFoundException("Question", question_id)
        return question

    @staticmethod
    def can_view(ctx: AuthorizationContext, question: BoardQuestion) -> bool:
        """The asker, the board, and everyone once the question is public."""
        return ctx.is_board or ctx.owns(question.submitted_by_id) or question.is_public

    def list_questions(self, ctx: AuthorizationContext) -> List[BoardQuestion]:
        """Board sees every question; residents see their own and public ones."""
        authorize(ctx, Operation.QUESTION_VIEW)
        if ctx.is_board:
            return self.question_repo.get_for_board(ctx.community_id)
        return self.question_repo.get_for_resident(ctx.community_id, ctx.user_id)

    def create_question(self, ctx: AuthorizationContext, data: QuestionCreate) -> BoardQuestion:
        authorize(ctx, Operation.QUESTION_CREATE)
        question = BoardQuestion(
            title=data.title,
            message=data.message,
            is_public=False,
            status=QuestionStatus.PENDING,
            community_id=ctx.community_id,
            submitted_by_id=ctx.user_id,
        )
        return self.question_repo.create(question)

    def get_question(self, ctx: AuthorizationContext, question_id: int) -> BoardQuestion:
        """
        Question with its responses.

        Raises:
            AuthorizationException: If a resident asks for someone else's private question
        """
        authorize(ctx, Operation.QUESTION_VIEW)
        question = self._get_question(ctx, question_id)
        if not self.can_view(ctx, question):
            raise AuthorizationException(message="Access denied")
        return question

    def respond(self, ctx: AuthorizationContext, question_id: int, data: ResponseCreate) -> BoardQuestionResponse:
        """
        Answer a question (board only). The question becomes answered,
        and a public answer makes the question public too.
        """
        authorize(ctx, Operation.QUESTION_RESPOND)

        with transaction(self.db):
            question = self._get_question(ctx, question_id)
            response = BoardQuestionResponse(
                message=data.message,
                is_public=data.is_public,
                responded_by_id=ctx.user_id,
            )
            question.status = QuestionStatus.ANSWERED
            if data.is_public:
                question.is_public = True
            response = self.question_repo.add_response(question, response)

        logger.info("Question %s answered by user %s", question_id, ctx.user_id)
        return response

    def set_visibility(self, ctx: AuthorizationContext, question_id: int, is_public: bool) -> BoardQuestion:
        """Publish or unpublish a question (board only)."""
        authorize(ctx, Operation.QUESTION_SET_VISIBILITY)
        question = self._get_question(ctx, question_id)

        updated = self.question_repo.update(question.id, {"is_public": is_public})
        return updated
