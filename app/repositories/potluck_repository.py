from sqlalchemy.orm import Session
from sqlalchemy import select, and_, func
from typing import List, Optional
from app.models.potluck import PotluckEvent, PotluckSignup, SignupCategory
from app.repositories.repository import BaseRepository


class PotluckRepository(BaseRepository[PotluckEvent]):
    """Repository for potluck events."""

    def __init__(self, db: Session):
        super().__init__(PotluckEvent, db)

    def get_community_event(
        self, community_id: int, event_id: int, for_update: bool = False
    ) -> Optional[PotluckEvent]:
        """Get an event only if it belongs to the community."""
        query = self.db.query(PotluckEvent).filter(
            and_(PotluckEvent.id == event_id, PotluckEvent.community_id == community_id)
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_by_community(self, community_id: int) -> List[PotluckEvent]:
        """Events of a community, soonest first."""
        stmt = (
            select(PotluckEvent)
            .where(PotluckEvent.community_id == community_id)
            .order_by(PotluckEvent.event_date, PotluckEvent.id)
        )
        return list(self.db.execute(stmt).scalars().all())


class PotluckSignupRepository(BaseRepository[PotluckSignup]):
    """Repository for potluck signups."""

    def __init__(self, db: Session):
        super().__init__(PotluckSignup, db)

    def get_event_signup(self, event_id: int, signup_id: int) -> Optional[PotluckSignup]:
        """Get a signup only if it belongs to the event."""
        return (
            self.db.query(PotluckSignup)
            .filter(
                and_(
                    PotluckSignup.id == signup_id,
                    PotluckSignup.potluck_event_id == event_id,
                )
            )
            .first()
        )

    def get_category_count(self, event_id: int, category: SignupCategory) -> int:
        """Number of signups of one category for an event."""
        stmt = select(func.count()).select_from(PotluckSignup).where(
            and_(
                PotluckSignup.potluck_event_id == event_id,
                PotluckSignup.category == category,
            )
        )
        return self.db.execute(stmt).scalar_one()
