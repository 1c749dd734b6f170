from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_community_context
from app.schemas.result import Result
from app.schemas.suggestion import (
    SuggestionCreate,
    SuggestionUpdate,
    SuggestionResponse,
    SuggestionStatusUpdate,
    UpvoteResponse,
)
from app.schemas.user import MessageResponse
from app.services.suggestion_service import SuggestionService

router = APIRouter()


@router.get("/{community_id}/suggestions", response_model=Result[List[SuggestionResponse]])
async def list_suggestions(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """List suggestions, most upvoted first."""
    service = SuggestionService(db)
    return Result.successful(data=service.list_suggestions(ctx))


@router.post("/{community_id}/suggestions", response_model=Result[SuggestionResponse], status_code=status.HTTP_201_CREATED)
async def create_suggestion(
    suggestion_data: SuggestionCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Suggest a topic for the next meeting."""
    service = SuggestionService(db)
    return Result.successful(data=service.create_suggestion(ctx, suggestion_data))


@router.put("/{community_id}/suggestions/{suggestion_id}", response_model=Result[SuggestionResponse])
async def update_suggestion(
    suggestion_id: int,
    suggestion_data: SuggestionUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Edit a suggestion (author or admin)."""
    service = SuggestionService(db)
    return Result.successful(data=service.update_suggestion(ctx, suggestion_id, suggestion_data))


@router.delete("/{community_id}/suggestions/{suggestion_id}", response_model=Result[MessageResponse])
async def delete_suggestion(
    suggestion_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Delete a suggestion (author, admin or board member)."""
    service = SuggestionService(db)
    service.delete_suggestion(ctx, suggestion_id)
    return Result.successful(data={"message": "Suggestion deleted"})


@router.put("/{community_id}/suggestions/{suggestion_id}/status", response_model=Result[SuggestionResponse])
async def update_suggestion_status(
    suggestion_id: int,
    status_data: SuggestionStatusUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Set the triage status of a suggestion (board only)."""
    service = SuggestionService(db)
    return Result.successful(data=service.set_status(ctx, suggestion_id, status_data.status))


@router.post("/{community_id}/suggestions/{suggestion_id}/upvote", response_model=Result[UpvoteResponse])
async def toggle_upvote(
    suggestion_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Toggle the caller's upvote."""
    service = SuggestionService(db)
    return Result.successful(data=service.toggle_upvote(ctx, suggestion_id))
