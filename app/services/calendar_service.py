import calendar
import re
from datetime import date
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from app.core.exception import ResourceNotFoundException, ValidationException
from app.core.permissions import AuthorizationContext, Operation, authorize
from app.models.calendar_event import CalendarEvent
from app.repositories.calendar_repository import CalendarRepository
from app.schemas.calendar import CalendarEventCreate, CalendarEventUpdate

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def month_bounds(month: str) -> Tuple[date, date]:
    """
    First and last day of a ``YYYY-MM`` month.

    Raises:
        ValidationException: If the value is not a valid month
    """
    match = MONTH_PATTERN.match(month.strip())
    if not match:
        raise ValidationException("Expected YYYY-MM", field="month")

    year, mon = int(match.group(1)), int(match.group(2))
    if not 1 <= mon <= 12:
        raise ValidationException("Month must be between 01 and 12", field="month")

    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last_day)


class CalendarService:
    """Shared community calendar; the board maintains it, every member reads it."""

    def __init__(self, db: Session):
        self.db = db
        self.calendar_repo = CalendarRepository(db)

    def _get_event(self, ctx: AuthorizationContext, event_id: int) -> CalendarEvent:
        event = self.calendar_repo.get_community_event(ctx.community_id, event_id)
        if not event:
            raise ResourceNotFoundException("Event", event_id)
        return event

    def list_events(self, ctx: AuthorizationContext, month: Optional[str] = None) -> List[CalendarEvent]:
        authorize(ctx, Operation.CALENDAR_VIEW)
        if month:
            start, end = month_bounds(month)
            return self.calendar_repo.get_by_community(ctx.community_id, start, end)
        return self.calendar_repo.get_by_community(ctx.community_id)

    def create_event(self, ctx: AuthorizationContext, data: CalendarEventCreate) -> CalendarEvent:
        authorize(ctx, Operation.CALENDAR_CREATE)
        event = CalendarEvent(
            **data.model_dump(),
            community_id=ctx.community_id,
            created_by_id=ctx.user_id,
        )
        return self.calendar_repo.create(event)

    def update_event(self, ctx: AuthorizationContext, event_id: int, data: CalendarEventUpdate) -> CalendarEvent:
        authorize(ctx, Operation.CALENDAR_UPDATE)
        event = self._get_event(ctx, event_id)
        return self.calendar_repo.update(event.id, data.model_dump())

    def delete_event(self, ctx: AuthorizationContext, event_id: int) -> bool:
        authorize(ctx, Operation.CALENDAR_DELETE)
        event = self._get_event(ctx, event_id)
        return self.calendar_repo.delete(event.id)
