from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_community_context
from app.schemas.potluck import (
    PotluckEventCreate,
    PotluckEventUpdate,
    PotluckEventResponse,
    PotluckEventDetailResponse,
    PotluckSignupCreate,
    PotluckSignupUpdate,
    PotluckSignupResponse,
)
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.potluck_service import PotluckService

router = APIRouter()


@router.get("/{community_id}/potlucks", response_model=Result[List[PotluckEventResponse]])
async def list_potlucks(
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """List potluck events with their signup counts."""
    service = PotluckService(db)
    return Result.successful(data=service.list_events(ctx))


@router.post("/{community_id}/potlucks", response_model=Result[PotluckEventResponse], status_code=status.HTTP_201_CREATED)
async def create_potluck(
    event_data: PotluckEventCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Create a potluck event (admin only)."""
    service = PotluckService(db)
    return Result.successful(data=service.create_event(ctx, event_data))


@router.get("/{community_id}/potlucks/{potluck_id}", response_model=Result[PotluckEventDetailResponse])
async def get_potluck(
    potluck_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Get a potluck event with its signups."""
    service = PotluckService(db)
    return Result.successful(data=service.get_event(ctx, potluck_id))


@router.put("/{community_id}/potlucks/{potluck_id}", response_model=Result[PotluckEventResponse])
async def update_potluck(
    potluck_id: int,
    event_data: PotluckEventUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Update a potluck event (admin only)."""
    service = PotluckService(db)
    return Result.successful(data=service.update_event(ctx, potluck_id, event_data))


@router.delete("/{community_id}/potlucks/{potluck_id}", response_model=Result[MessageResponse])
async def delete_potluck(
    potluck_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Delete a potluck event (admin only)."""
    service = PotluckService(db)
    service.delete_event(ctx, potluck_id)
    return Result.successful(data={"message": "Potluck event deleted"})


@router.post(
    "/{community_id}/potlucks/{potluck_id}/signups",
    response_model=Result[PotluckSignupResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_signup(
    potluck_id: int,
    signup_data: PotluckSignupCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Sign up to bring a dish."""
    service = PotluckService(db)
    return Result.successful(data=service.create_signup(ctx, potluck_id, signup_data))


@router.put("/{community_id}/potlucks/{potluck_id}/signups/{signup_id}", response_model=Result[PotluckSignupResponse])
async def update_signup(
    potluck_id: int,
    signup_id: int,
    signup_data: PotluckSignupUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Edit a signup (owner or admin)."""
    service = PotluckService(db)
    return Result.successful(data=service.update_signup(ctx, potluck_id, signup_id, signup_data))


@router.delete("/{community_id}/potlucks/{potluck_id}/signups/{signup_id}", response_model=Result[MessageResponse])
async def delete_signup(
    potluck_id: int,
    signup_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Remove a signup (owner or admin)."""
    service = PotluckService(db)
    service.delete_signup(ctx, potluck_id, signup_id)
    return Result.successful(data={"message": "Signup removed"})
