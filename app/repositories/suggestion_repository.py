from sqlalchemy.orm import Session
from sqlalchemy import select, and_, func
from typing import List, Optional
from app.models.suggestion import MeetingSuggestion, SuggestionUpvote
from app.repositories.repository import BaseRepository


class SuggestionRepository(BaseRepository[MeetingSuggestion]):
    """Repository for meeting suggestions and upvotes."""

    def __init__(self, db: Session):
        super().__init__(MeetingSuggestion, db)

    def get_community_suggestion(
        self, community_id: int, suggestion_id: int
    ) -> Optional[MeetingSuggestion]:
        """Get a suggestion only if it belongs to the community."""
        return (
            self.db.query(MeetingSuggestion)
            .filter(
                and_(
                    MeetingSuggestion.id == suggestion_id,
                    MeetingSuggestion.community_id == community_id,
                )
            )
            .first()
        )

    def get_by_community(self, community_id: int, user_id: int) -> List[dict]:
        """
        Suggestions of a community with upvote info for one viewer.

        Returns:
            List of dicts with ``suggestion``, ``upvote_count`` and ``user_upvoted``,
            most upvoted first, then newest
        """
        upvote_count = (
            select(func.count())
            .select_from(SuggestionUpvote)
            .where(SuggestionUpvote.suggestion_id == MeetingSuggestion.id)
            .correlate(MeetingSuggestion)
            .scalar_subquery()
        )
        user_upvoted = (
            select(func.count())
            .select_from(SuggestionUpvote)
            .where(
                and_(
                    SuggestionUpvote.suggestion_id == MeetingSuggestion.id,
                    SuggestionUpvote.user_id == user_id,
                )
            )
            .correlate(MeetingSuggestion)
            .scalar_subquery()
        )
        stmt = (
            select(MeetingSuggestion, upvote_count.label("upvote_count"), user_upvoted.label("user_upvoted"))
            .where(MeetingSuggestion.community_id == community_id)
            .order_by(
                upvote_count.desc(),
                MeetingSuggestion.created_at.desc(),
                MeetingSuggestion.id.desc(),
            )
        )
        return [
            {
                "suggestion": row[0],
                "upvote_count": row[1],
                "user_upvoted": row[2] > 0,
            }
            for row in self.db.execute(stmt).all()
        ]

    def get_upvote_count(self, suggestion_id: int) -> int:
        stmt = select(func.count()).select_from(SuggestionUpvote).where(
            SuggestionUpvote.suggestion_id == suggestion_id
        )
        return self.db.execute(stmt).scalar_one()

    def has_upvoted(self, suggestion_id: int, user_id: int) -> bool:
        return self.db.get(SuggestionUpvote, (user_id, suggestion_id)) is not None

    def toggle_upvote(self, suggestion_id: int, user_id: int) -> bool:
        """
        Add the user's upvote, or remove it if present.

        Returns:
            True if the suggestion is upvoted afterwards
        """
        existing = self.db.get(SuggestionUpvote, (user_id, suggestion_id))
        if existing:
            self.db.delete(existing)
            self._persist()
            return False

        self.db.add(SuggestionUpvote(user_id=user_id, suggestion_id=suggestion_id))
        self._persist()
        return True
