from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Optional
from app.models.user import User
from ..repositories.repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email, ignoring case."""
        return (
            self.db.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def email_exists(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        """Check if email is taken, optionally ignoring one user (for profile edits)."""
        query = self.db.query(User).filter(func.lower(User.email) == email.strip().lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.count() > 0

    def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        """Find the user holding a password-reset token digest."""
        return self.db.query(User).filter(User.reset_token_hash == token_hash).first()

    def update_password(self, user_id: int, hashed_password: str) -> Optional[User]:
        """Update user password."""
        user = self.get(user_id)
        if user:
            user.hashed_password = hashed_password
            self._persist()
            self.db.refresh(user)
        return user

    def set_reset_token(
        self, user: User, token_hash: Optional[str], expires_at: Optional[datetime]
    ) -> User:
        """Store (or clear, with None) the reset token digest and its expiry."""
        user.reset_token_hash = token_hash
        user.reset_token_expires_at = expires_at
        self._persist()
        self.db.refresh(user)
        return user
