from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_community_context
from app.schemas.question import (
    QuestionCreate,
    QuestionOut,
    QuestionDetailOut,
    QuestionResponseOut,
    ResponseCreate,
    VisibilityUpdate,
)
from app.schemas.result import Result
from app.services.question_service import QuestionService

router = APIRouter()


@router.get("/{community_id}/questions", response_model=Result[List[QuestionOut]])
async def list_questions(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Board members see every question; residents see their own and public ones."""
    service = QuestionService(db)
    return Result.successful(data=service.list_questions(ctx))


@router.post("/{community_id}/questions", response_model=Result[QuestionOut], status_code=status.HTTP_201_CREATED)
async def create_question(
    question_data: QuestionCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Ask the board a question. Questions start private."""
    service = QuestionService(db)
    return Result.successful(data=service.create_question(ctx, question_data))


@router.get("/{community_id}/questions/{question_id}", response_model=Result[QuestionDetailOut])
async def get_question(
    question_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Get a question with its responses."""
    service = QuestionService(db)
    return Result.successful(data=service.get_question(ctx, question_id))


@router.post(
    "/{community_id}/questions/{question_id}/responses",
    response_model=Result[QuestionResponseOut],
    status_code=status.HTTP_201_CREATED,
)
async def respond_to_question(
    question_id: int,
    response_data: ResponseCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Answer a question (board only)."""
    service = QuestionService(db)
    return Result.successful(data=service.respond(ctx, question_id, response_data))


@router.put("/{community_id}/questions/{question_id}/visibility", response_model=Result[QuestionOut])
async def set_question_visibility(
    question_id: int,
    visibility: VisibilityUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Make a question public or private (board only)."""
    service = QuestionService(db)
    return Result.successful(data=service.set_visibility(ctx, question_id, visibility.is_public))
