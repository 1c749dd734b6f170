import logging
from sqlalchemy.orm import Session
from typing import List
from app.core.exception import ResourceNotFoundException, CategoryFullException
from app.core.permissions import (
    AuthorizationContext,
    Capability,
    Operation,
    authorize,
    require_owner_or,
)
from app.database import transaction
from app.models.potluck import PotluckEvent, PotluckSignup, SignupCategory
from app.repositories.potluck_repository import PotluckRepository, PotluckSignupRepository
from app.schemas.potluck import (
    PotluckEventCreate,
    PotluckEventUpdate,
    PotluckSignupCreate,
    PotluckSignupUpdate,
)

logger = logging.getLogger(__name__)


class PotluckService:
    """Potluck events and the dishes members sign up to bring."""

    def __init__(self, db: Session):
        self.db = db
        self.event_repo = PotluckRepository(db)
        self.signup_repo = PotluckSignupRepository(db)

    def _get_event(self, ctx: AuthorizationContext, event_id: int, for_update: bool = False) -> PotluckEvent:
        event = self.event_repo.get_community_event(ctx.community_id, event_id, for_update=for_update)
        if not event:
            raise ResourceNotFoundException("Potluck event", event_id)
        return event

    def _get_signup(self, event: PotluckEvent, signup_id: int) -> PotluckSignup:
        signup = self.signup_repo.get_event_signup(event.id, signup_id)
        if not signup:
            raise ResourceNotFoundException("Signup", signup_id)
        return signup

    def _check_category_limit(self, event: PotluckEvent, category: SignupCategory) -> None:
        """Raise CategoryFullException if the category already holds its maximum."""
        limit = event.limit_for(category)
        if not limit:
            return

        count = self.signup_repo.get_category_count(event.id, category)
        if count >= limit:
            logger.warning("Potluck %s: %s signups full (%s)", event.id, category.value, limit)
            raise CategoryFullException(category.value, limit)

    # Events

    def list_events(self, ctx: AuthorizationContext) -> List[PotluckEvent]:
        authorize(ctx, Operation.POTLUCK_VIEW)
        return self.event_repo.get_by_community(ctx.community_id)

    def get_event(self, ctx: AuthorizationContext, event_id: int) -> PotluckEvent:
        """Event with its signups in signup order."""
        authorize(ctx, Operation.POTLUCK_VIEW)
        return self._get_event(ctx, event_id)

    def create_event(self, ctx: AuthorizationContext, data: PotluckEventCreate) -> PotluckEvent:
        """Create a potluck (admin only)."""
        authorize(ctx, Operation.POTLUCK_CREATE)
        event = PotluckEvent(
            **data.model_dump(),
            community_id=ctx.community_id,
            created_by_id=ctx.user_id,
        )
        event = self.event_repo.create(event)
        logger.info("Potluck %s created in community %s", event.id, ctx.community_id)
        return event

    def update_event(self, ctx: AuthorizationContext, event_id: int, data: PotluckEventUpdate) -> PotluckEvent:
        """Replace the event details and limits (admin only)."""
        authorize(ctx, Operation.POTLUCK_UPDATE)
        event = self._get_event(ctx, event_id)

        updated = self.event_repo.update(event.id, data.model_dump())
        if not updated:
            raise ResourceNotFoundException("Potluck event", event_id)
        return updated

    def delete_event(self, ctx: AuthorizationContext, event_id: int) -> bool:
        """Delete a potluck and its signups (admin only)."""
        authorize(ctx, Operation.POTLUCK_DELETE)
        event = self._get_event(ctx, event_id)
        return self.event_repo.delete(event.id)

    # Signups

    def create_signup(
        self, ctx: AuthorizationContext, event_id: int, data: PotluckSignupCreate
    ) -> PotluckSignup:
        """
        Sign up to bring a dish.

        The limit check and the insert share one transaction holding the
        event row lock.

        Raises:
            ResourceNotFoundException: If the event is not in this community
            CategoryFullException: If the category is at its maximum
        """
        authorize(ctx, Operation.SIGNUP_CREATE)

        with transaction(self.db):
            event = self._get_event(ctx, event_id, for_update=True)
            self._check_category_limit(event, data.category)

            signup = PotluckSignup(
                dish_name=data.dish_name,
                category=data.category,
                notes=data.notes,
                potluck_event_id=event.id,
                user_id=ctx.user_id,
            )
            signup = self.signup_repo.create(signup)

        logger.info("User %s signed up for potluck %s (%s)", ctx.user_id, event_id, data.category.value)
        return signup

    def update_signup(
        self, ctx: AuthorizationContext, event_id: int, signup_id: int, data: PotluckSignupUpdate
    ) -> PotluckSignup:
        """
        Edit a signup (owner or admin).

        Moving to another category is checked against that category's limit;
        keeping the category never is.
        """
        with transaction(self.db):
            event = self._get_event(ctx, event_id, for_update=True)
            signup = self._get_signup(event, signup_id)
            require_owner_or(
                ctx, signup.user_id, Capability.ADMIN_ONLY, "You can only edit your own signups"
            )

            if data.category != signup.category:
                self._check_category_limit(event, data.category)

            updated = self.signup_repo.update(signup.id, data.model_dump())

        return updated

    def delete_signup(self, ctx: AuthorizationContext, event_id: int, signup_id: int) -> bool:
        """Remove a signup (owner or admin)."""
        event = self._get_event(ctx, event_id)
        signup = self._get_signup(event, signup_id)
        require_owner_or(
            ctx, signup.user_id, Capability.ADMIN_ONLY, "You can only delete your own signups"
        )
        return self.signup_repo.delete(signup.id)
