import logging
from sqlalchemy.orm import Session
from typing import List
from app.core.exception import ResourceNotFoundException
from app.core.permissions import (
    AuthorizationContext,
    Capability,
    Operation,
    authorize,
    require_owner_or,
)
from app.models.suggestion import MeetingSuggestion, SuggestionStatus
from app.repositories.suggestion_repository import SuggestionRepository
from app.schemas.suggestion import SuggestionCreate, SuggestionUpdate

logger = logging.getLogger(__name__)


def suggestion_to_dict(suggestion: MeetingSuggestion, upvote_count: int, user_upvoted: bool) -> dict:
    return {
        "id": suggestion.id,
        "uuid": suggestion.uuid,
        "community_id": suggestion.community_id,
        "title": suggestion.title,
        "description": suggestion.description,
        "status": suggestion.status,
        "submitted_by_id": suggestion.submitted_by_id,
        "submitter_name": suggestion.submitted_by.name if suggestion.submitted_by else None,
        "status_updated_by_id": suggestion.status_updated_by_id,
        "upvote_count": upvote_count,
        "user_upvoted": user_upvoted,
        "created_at": suggestion.created_at,
        "updated_at": suggestion.updated_at,
    }


class SuggestionService:
    """Meeting agenda suggestions and their upvotes."""

    def __init__(self, db: Session):
        self.db = db
        self.suggestion_repo = SuggestionRepository(db)

    def _get_suggestion(self, ctx: AuthorizationContext, suggestion_id: int) -> MeetingSuggestion:
        suggestion = self.suggestion_repo.get_community_suggestion(ctx.community_id, suggestion_id)
        if not suggestion:
            raise ResourceNotFoundException("Suggestion", suggestion_id)
        return suggestion

    def _to_dict(self, ctx: AuthorizationContext, suggestion: MeetingSuggestion) -> dict:
        return suggestion_to_dict(
            suggestion,
            self.suggestion_repo.get_upvote_count(suggestion.id),
            self.suggestion_repo.has_upvoted(suggestion.id, ctx.user_id),
        )

    def list_suggestions(self, ctx: AuthorizationContext) -> List[dict]:
        """Suggestions ordered by upvotes then recency, with the caller's upvote flag."""
        authorize(ctx, Operation.SUGGESTION_VIEW)
        return [
            suggestion_to_dict(row["suggestion"], row["upvote_count"], row["user_upvoted"])
            for row in self.suggestion_repo.get_by_community(ctx.community_id, ctx.user_id)
        ]

    def create_suggestion(self, ctx: AuthorizationContext, data: SuggestionCreate) -> dict:
        authorize(ctx, Operation.SUGGESTION_CREATE)
        suggestion = MeetingSuggestion(
            title=data.title,
            description=data.description,
            status=SuggestionStatus.SUBMITTED,
            community_id=ctx.community_id,
            submitted_by_id=ctx.user_id,
        )
        suggestion = self.suggestion_repo.create(suggestion)
        return suggestion_to_dict(suggestion, 0, False)

    def update_suggestion(self, ctx: AuthorizationContext, suggestion_id: int, data: SuggestionUpdate) -> dict:
        """Edit title and description (author or admin)."""
        suggestion = self._get_suggestion(ctx, suggestion_id)
        require_owner_or(
            ctx, suggestion.submitted_by_id, Capability.ADMIN_ONLY,
            "You can only edit your own suggestions",
        )

        updated = self.suggestion_repo.update(suggestion.id, data.model_dump())
        return self._to_dict(ctx, updated)

    def delete_suggestion(self, ctx: AuthorizationContext, suggestion_id: int) -> bool:
        """Delete a suggestion (author, admin or board member)."""
        suggestion = self._get_suggestion(ctx, suggestion_id)
        require_owner_or(
            ctx, suggestion.submitted_by_id, Capability.BOARD_OR_ADMIN,
            "You can only delete your own suggestions",
        )
        return self.suggestion_repo.delete(suggestion.id)

    def set_status(self, ctx: AuthorizationContext, suggestion_id: int, status: SuggestionStatus) -> dict:
        """Move a suggestion through board triage (board only)."""
        authorize(ctx, Operation.SUGGESTION_SET_STATUS)
        suggestion = self._get_suggestion(ctx, suggestion_id)

        updated = self.suggestion_repo.update(
            suggestion.id, {"status": status, "status_updated_by_id": ctx.user_id}
        )
        logger.info("Suggestion %s marked %s by user %s", suggestion.id, status.value, ctx.user_id)
        return self._to_dict(ctx, updated)

    def toggle_upvote(self, ctx: AuthorizationContext, suggestion_id: int) -> dict:
        """Add the caller's upvote, or take it back if already given."""
        authorize(ctx, Operation.SUGGESTION_UPVOTE)
        suggestion = self._get_suggestion(ctx, suggestion_id)

        upvoted = self.suggestion_repo.toggle_upvote(suggestion.id, ctx.user_id)
        return {
            "upvoted": upvoted,
            "upvote_count": self.suggestion_repo.get_upvote_count(suggestion.id),
        }
