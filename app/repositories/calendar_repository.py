from sqlalchemy.orm import Session
from sqlalchemy import select, and_
from datetime import date
from typing import List, Optional
from app.models.calendar_event import CalendarEvent
from app.repositories.repository import BaseRepository


class CalendarRepository(BaseRepository[CalendarEvent]):
    """Repository for calendar events."""

    def __init__(self, db: Session):
        super().__init__(CalendarEvent, db)

    def get_community_event(self, community_id: int, event_id: int) -> Optional[CalendarEvent]:
        """Get an event only if it belongs to the community."""
        return (
            self.db.query(CalendarEvent)
            .filter(
                and_(
                    CalendarEvent.id == event_id,
                    CalendarEvent.community_id == community_id,
                )
            )
            .first()
        )

    def get_by_community(
        self,
        community_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[CalendarEvent]:
        """
        Events of a community ordered by date then start time.

        Args:
            community_id: Community ID
            start_date: Optional inclusive lower bound on event_date
            end_date: Optional inclusive upper bound on event_date
        """
        stmt = select(CalendarEvent).where(CalendarEvent.community_id == community_id)
        if start_date:
            stmt = stmt.where(CalendarEvent.event_date >= start_date)
        if end_date:
            stmt = stmt.where(CalendarEvent.event_date <= end_date)

        stmt = stmt.order_by(
            CalendarEvent.event_date,
            CalendarEvent.start_time.is_(None),
            CalendarEvent.start_time,
            CalendarEvent.id,
        )
        return list(self.db.execute(stmt).scalars().all())
