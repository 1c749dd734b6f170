import logging
from datetime import datetime
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from app.core.clock import Clock, ensure_utc, system_clock
from app.core.exception import (
    ResourceNotFoundException,
    ValidationException,
    PollNotOpenException,
    PollClosedException,
    EmptySelectionException,
    InvalidSelectionCountException,
    InvalidOptionException,
    PollTypeLockedException,
)
from app.core.permissions import AuthorizationContext, Operation, authorize
from app.database import transaction
from app.models.poll import Poll, PollState, PollType, ResultsVisibility
from app.repositories.poll_repository import PollRepository
from app.schemas.poll import PollCreate, PollUpdate

logger = logging.getLogger(__name__)


def poll_state(poll: Poll, now: datetime) -> PollState:
    """Where the clock sits relative to the poll window. ``closes_at`` itself is still open."""
    opens_at = ensure_utc(poll.opens_at)
    closes_at = ensure_utc(poll.closes_at)

    if now < opens_at:
        return PollState.NOT_YET_OPEN
    if closes_at is not None and closes_at < now:
        return PollState.CLOSED
    return PollState.OPEN


def can_see_results(poll: Poll, is_board: bool, has_voted: bool, now: datetime) -> bool:
    """
    Results visibility.

    The board always sees results and everyone sees them once the poll is
    closed. Otherwise ``always`` shows them to all members, ``after_vote``
    only to members who voted and ``after_close`` to nobody else.
    """
    if is_board:
        return True
    if poll.results_visible == ResultsVisibility.ALWAYS:
        return True
    if poll_state(poll, now) == PollState.CLOSED:
        return True
    if poll.results_visible == ResultsVisibility.AFTER_VOTE:
        return has_voted
    return False


def percentage(count: int, total: int) -> int:
    """Share of all vote rows as a whole percent, halves rounded up."""
    if total <= 0:
        return 0
    return (count * 200 + total) // (2 * total)


def _validate_window(opens_at: datetime, closes_at: Optional[datetime]) -> None:
    if closes_at is not None and ensure_utc(closes_at) <= ensure_utc(opens_at):
        raise ValidationException("Close time must be after the open time", field="closes_at")


class PollService:
    """Poll CRUD and the voting engine."""

    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.poll_repo = PollRepository(db)

    def _get_poll(self, ctx: AuthorizationContext, poll_id: int) -> Poll:
        poll = self.poll_repo.get_community_poll(ctx.community_id, poll_id)
        if not poll:
            raise ResourceNotFoundException("Poll", poll_id)
        return poll

    def _summary(self, poll: Poll, now: datetime, vote_count: int) -> dict:
        return {
            "id": poll.id,
            "uuid": poll.uuid,
            "question": poll.question,
            "description": poll.description,
            "poll_type": poll.poll_type,
            "is_anonymous": poll.is_anonymous,
            "results_visible": poll.results_visible,
            "opens_at": ensure_utc(poll.opens_at),
            "closes_at": ensure_utc(poll.closes_at),
            "created_by_id": poll.created_by_id,
            "creator_name": poll.creator_name,
            "created_at": poll.created_at,
            "state": poll_state(poll, now),
            "vote_count": vote_count,
        }

    def list_polls(self, ctx: AuthorizationContext) -> List[dict]:
        """Polls of the community, newest first, with the number of distinct voters."""
        authorize(ctx, Operation.POLL_VIEW)
        polls = self.poll_repo.get_by_community(ctx.community_id)
        counts = self.poll_repo.get_participation_counts([poll.id for poll in polls])
        now = self.clock.now()
        return [self._summary(poll, now, counts.get(poll.id, 0)) for poll in polls]

    def create_poll(self, ctx: AuthorizationContext, data: PollCreate) -> Poll:
        """
        Create a poll and its options in one unit of work (board only).

        Raises:
            ValidationException: If the close time is not after the open time
        """
        authorize(ctx, Operation.POLL_CREATE)

        opens_at = ensure_utc(data.opens_at) if data.opens_at else self.clock.now()
        closes_at = ensure_utc(data.closes_at)
        _validate_window(opens_at, closes_at)

        with transaction(self.db):
            poll = Poll(
                question=data.question,
                description=data.description,
                poll_type=data.poll_type,
                is_anonymous=data.is_anonymous,
                results_visible=data.results_visible,
                opens_at=opens_at,
                closes_at=closes_at,
                community_id=ctx.community_id,
                created_by_id=ctx.user_id,
            )
            poll = self.poll_repo.create_with_options(poll, data.options)

        logger.info("Poll %s created in community %s by user %s", poll.id, ctx.community_id, ctx.user_id)
        return poll

    def get_poll_detail(self, ctx: AuthorizationContext, poll_id: int) -> dict:
        """
        Poll with options, the caller's current selection and, when the caller
        may see them, the results.
        """
        authorize(ctx, Operation.POLL_VIEW)
        poll = self._get_poll(ctx, poll_id)
        now = self.clock.now()

        user_votes = self.poll_repo.get_user_votes(poll.id, ctx.user_id)
        has_voted = bool(user_votes)
        visible = can_see_results(poll, ctx.is_board, has_voted, now)
        participation = self.poll_repo.get_participation_count(poll.id)

        detail = self._summary(poll, now, participation)
        state = detail["state"]
        seconds_remaining = None
        if state == PollState.OPEN and poll.closes_at is not None:
            seconds_remaining = max(0, int((ensure_utc(poll.closes_at) - now).total_seconds()))

        detail.update(
            {
                "options": poll.options,
                "user_votes": user_votes,
                "has_voted": has_voted,
                "can_see_results": visible,
                "results": self.get_results(poll, participation) if visible else None,
                "seconds_remaining": seconds_remaining,
            }
        )
        return detail

    def get_results(self, poll: Poll, participation: Optional[int] = None) -> dict:
        """
        Per-option counts and percentages. Voter identities are attached
        only for non-anonymous polls.
        """
        counts = self.poll_repo.get_option_counts(poll.id)
        total = sum(counts.values())
        voters: Dict[int, list] = {} if poll.is_anonymous else self.poll_repo.get_voters(poll.id)

        options = []
        for option in poll.options:
            count = counts.get(option.id, 0)
            entry = {
                "id": option.id,
                "option_text": option.option_text,
                "display_order": option.display_order,
                "vote_count": count,
                "percentage": percentage(count, total),
                "voters": None,
            }
            if not poll.is_anonymous:
                entry["voters"] = [
                    {"id": user.id, "name": user.name, "avatar_url": user.avatar_url}
                    for user in voters.get(option.id, [])
                ]
            options.append(entry)

        if participation is None:
            participation = self.poll_repo.get_participation_count(poll.id)

        return {"total_votes": total, "participation_count": participation, "options": options}

    def update_poll(self, ctx: AuthorizationContext, poll_id: int, data: PollUpdate) -> Poll:
        """Update poll fields (board only). Options cannot be changed."""
        authorize(ctx, Operation.POLL_UPDATE)
        poll = self._get_poll(ctx, poll_id)

        update_data = data.model_dump(exclude_unset=True)
        new_type = update_data.get("poll_type")
        if (
            new_type is not None
            and new_type != poll.poll_type
            and self.poll_repo.get_participation_count(poll.id) > 0
        ):
            raise PollTypeLockedException()

        # Non-nullable columns; an explicit null keeps the current value
        for key in ("question", "poll_type", "is_anonymous", "results_visible", "opens_at"):
            if key in update_data and update_data[key] is None:
                del update_data[key]
        for key in ("opens_at", "closes_at"):
            if key in update_data:
                update_data[key] = ensure_utc(update_data[key])

        _validate_window(
            update_data.get("opens_at", poll.opens_at),
            update_data.get("closes_at", poll.closes_at),
        )

        updated = self.poll_repo.update(poll.id, update_data)
        if not updated:
            raise ResourceNotFoundException("Poll", poll_id)
        return updated

    def delete_poll(self, ctx: AuthorizationContext, poll_id: int) -> bool:
        """Delete a poll with its options and votes (board only)."""
        authorize(ctx, Operation.POLL_DELETE)
        poll = self._get_poll(ctx, poll_id)
        return self.poll_repo.delete(poll.id)

    def cast_vote(self, ctx: AuthorizationContext, poll_id: int, option_ids: List[int]) -> List[int]:
        """
        Record the caller's ballot, replacing any earlier one.

        Runs as one transaction holding the poll row lock, so concurrent
        ballots of the same user cannot interleave.

        Returns:
            The option ids now recorded for the caller

        Raises:
            ResourceNotFoundException: If the poll is not in this community
            PollNotOpenException / PollClosedException: Outside the poll window
            EmptySelectionException: If no option was selected
            InvalidSelectionCountException: If a single-choice ballot has more than one option
            InvalidOptionException: If an option does not belong to the poll
        """
        authorize(ctx, Operation.POLL_VOTE)

        with transaction(self.db):
            poll = self.poll_repo.get_community_poll_for_update(ctx.community_id, poll_id)
            if not poll:
                raise ResourceNotFoundException("Poll", poll_id)

            state = poll_state(poll, self.clock.now())
            if state == PollState.NOT_YET_OPEN:
                raise PollNotOpenException()
            if state == PollState.CLOSED:
                raise PollClosedException()

            if not option_ids:
                raise EmptySelectionException()

            if poll.poll_type == PollType.SINGLE and len(option_ids) != 1:
                raise InvalidSelectionCountException()

            # Repeated ids in one ballot count once
            selected = list(dict.fromkeys(option_ids))

            valid_ids = {option.id for option in poll.options}
            invalid = [option_id for option_id in selected if option_id not in valid_ids]
            if invalid:
                raise InvalidOptionException(invalid)

            self.poll_repo.remove_user_votes(poll.id, ctx.user_id)
            self.poll_repo.add_votes(poll.id, ctx.user_id, selected)

        logger.info("User %s voted in poll %s", ctx.user_id, poll_id)
        return selected
