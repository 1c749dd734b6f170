from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.clock import Clock, get_clock
from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_community_context
from app.schemas.poll import (
    PollCreate,
    PollUpdate,
    PollResponse,
    PollSummaryResponse,
    PollDetailResponse,
    VoteRequest,
    VoteResponse,
)
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.poll_service import PollService

router = APIRouter()


@router.get("/{community_id}/polls", response_model=Result[List[PollSummaryResponse]])
async def list_polls(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """List the community's polls, newest first."""
    service = PollService(db, clock)
    return Result.successful(data=service.list_polls(ctx))


@router.post("/{community_id}/polls", response_model=Result[PollResponse], status_code=status.HTTP_201_CREATED)
async def create_poll(
    poll_data: PollCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Create a poll with at least two options (board only)."""
    service = PollService(db, clock)
    return Result.successful(data=service.create_poll(ctx, poll_data))


@router.get("/{community_id}/polls/{poll_id}", response_model=Result[PollDetailResponse])
async def get_poll(
    poll_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Poll detail with the caller's votes and, when visible, the results."""
    service = PollService(db, clock)
    return Result.successful(data=service.get_poll_detail(ctx, poll_id))


@router.put("/{community_id}/polls/{poll_id}", response_model=Result[PollResponse])
async def update_poll(
    poll_id: int,
    poll_data: PollUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Update poll settings (board only). Options cannot be changed."""
    service = PollService(db, clock)
    return Result.successful(data=service.update_poll(ctx, poll_id, poll_data))


@router.delete("/{community_id}/polls/{poll_id}", response_model=Result[MessageResponse])
async def delete_poll(
    poll_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Delete a poll and its votes (board only)."""
    service = PollService(db, clock)
    service.delete_poll(ctx, poll_id)
    return Result.successful(data={"message": "Poll deleted"})


@router.post("/{community_id}/polls/{poll_id}/vote", response_model=Result[VoteResponse])
async def cast_vote(
    poll_id: int,
    vote: VoteRequest,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Cast or replace the caller's vote."""
    service = PollService(db, clock)
    option_ids = service.cast_vote(ctx, poll_id, vote.option_ids)
    return Result.successful(data={"message": "Vote recorded", "option_ids": option_ids})
