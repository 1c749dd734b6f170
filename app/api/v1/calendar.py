from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.permissions import AuthorizationContext
from app.database import get_db
from app.dependencies import get_community_context
from app.schemas.calendar import CalendarEventCreate, CalendarEventUpdate, CalendarEventResponse
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.calendar_service import CalendarService

router = APIRouter()


@router.get("/{community_id}/calendar", response_model=Result[List[CalendarEventResponse]])
async def list_calendar_events(
    month: Optional[str] = Query(None, description="Restrict to one month, formatted YYYY-MM"),
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """List calendar events by date and start time."""
    service = CalendarService(db)
    return Result.successful(data=service.list_events(ctx, month))


@router.post("/{community_id}/calendar", response_model=Result[CalendarEventResponse], status_code=status.HTTP_201_CREATED)
async def create_calendar_event(
    event_data: CalendarEventCreate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Add an event to the calendar (board only)."""
    service = CalendarService(db)
    return Result.successful(data=service.create_event(ctx, event_data))


@router.put("/{community_id}/calendar/{event_id}", response_model=Result[CalendarEventResponse])
async def update_calendar_event(
    event_id: int,
    event_data: CalendarEventUpdate,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Update a calendar event (board only)."""
    service = CalendarService(db)
    return Result.successful(data=service.update_event(ctx, event_id, event_data))


@router.delete("/{community_id}/calendar/{event_id}", response_model=Result[MessageResponse])
async def delete_calendar_event(
    event_id: int,
    ctx: AuthorizationContext = Depends(get_community_context),
    db: Session = Depends(get_db)
):
    """Delete a calendar event (board only)."""
    service = CalendarService(db)
    service.delete_event(ctx, event_id)
    return Result.successful(data={"message": "Event deleted"})
