from sqlalchemy.orm import Session
from sqlalchemy import select, and_, delete, func
from typing import Dict, Iterable, List, Optional
from app.models.poll import Poll, PollOption, PollVote
from app.models.user import User
from app.repositories.repository import BaseRepository


class PollRepository(BaseRepository[Poll]):
    """Repository for polls, their options and votes."""

    def __init__(self, db: Session):
        super().__init__(Poll, db)

    def get_community_poll(self, community_id: int, poll_id: int) -> Optional[Poll]:
        """Get a poll only if it belongs to the community."""
        return (
            self.db.query(Poll)
            .filter(and_(Poll.id == poll_id, Poll.community_id == community_id))
            .first()
        )

    def get_community_poll_for_update(self, community_id: int, poll_id: int) -> Optional[Poll]:
        """Same as get_community_poll, locking the poll row for the vote transaction."""
        return (
            self.db.query(Poll)
            .filter(and_(Poll.id == poll_id, Poll.community_id == community_id))
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_community(self, community_id: int) -> List[Poll]:
        """All polls of a community, newest first."""
        stmt = (
            select(Poll)
            .where(Poll.community_id == community_id)
            .order_by(Poll.created_at.desc(), Poll.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_with_options(self, poll: Poll, option_texts: Iterable[str]) -> Poll:
        """Persist a poll and its options; options keep the given order."""
        for index, text in enumerate(option_texts):
            poll.options.append(PollOption(option_text=text, display_order=index))
        return self.create(poll)

    def get_user_votes(self, poll_id: int, user_id: int) -> List[int]:
        """Option ids the user currently has selected in a poll."""
        stmt = (
            select(PollVote.option_id)
            .where(and_(PollVote.poll_id == poll_id, PollVote.user_id == user_id))
            .order_by(PollVote.option_id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def has_voted(self, poll_id: int, user_id: int) -> bool:
        stmt = (
            select(PollVote.id)
            .where(and_(PollVote.poll_id == poll_id, PollVote.user_id == user_id))
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def remove_user_votes(self, poll_id: int, user_id: int) -> int:
        """Delete every vote row of a user in a poll. Returns the number removed."""
        stmt = delete(PollVote).where(
            and_(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        )
        result = self.db.execute(stmt)
        self._persist()
        return result.rowcount

    def add_votes(self, poll_id: int, user_id: int, option_ids: Iterable[int]) -> List[PollVote]:
        """Insert one vote row per option id."""
        votes = [
            PollVote(poll_id=poll_id, option_id=option_id, user_id=user_id)
            for option_id in option_ids
        ]
        self.db.add_all(votes)
        self._persist()
        return votes

    def get_option_counts(self, poll_id: int) -> Dict[int, int]:
        """Vote rows per option id; options without votes are absent."""
        stmt = (
            select(PollVote.option_id, func.count(PollVote.id))
            .where(PollVote.poll_id == poll_id)
            .group_by(PollVote.option_id)
        )
        return {option_id: count for option_id, count in self.db.execute(stmt).all()}

    def get_voters(self, poll_id: int) -> Dict[int, List[User]]:
        """Voters per option id, in voting order."""
        stmt = (
            select(PollVote.option_id, User)
            .join(User, User.id == PollVote.user_id)
            .where(PollVote.poll_id == poll_id)
            .order_by(PollVote.id)
        )
        voters: Dict[int, List[User]] = {}
        for option_id, user in self.db.execute(stmt).all():
            voters.setdefault(option_id, []).append(user)
        return voters

    def get_participation_count(self, poll_id: int) -> int:
        """Number of distinct users who voted."""
        stmt = select(func.count(func.distinct(PollVote.user_id))).where(
            PollVote.poll_id == poll_id
        )
        return self.db.execute(stmt).scalar_one()

    def get_participation_counts(self, poll_ids: List[int]) -> Dict[int, int]:
        """Distinct voters per poll id for a batch of polls."""
        if not poll_ids:
            return {}
        stmt = (
            select(PollVote.poll_id, func.count(func.distinct(PollVote.user_id)))
            .where(PollVote.poll_id.in_(poll_ids))
            .group_by(PollVote.poll_id)
        )
        return {poll_id: count for poll_id, count in self.db.execute(stmt).all()}
