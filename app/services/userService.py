import logging
from datetime import timedelta
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from app.models.user import User
from ..config import settings
from ..core.clock import Clock, ensure_utc, system_clock
from ..repositories.userRepository import UserRepository
from ..repositories.community_repository import CommunityRepository
from ..schemas.user import UserCreate, UserUpdate
from ..utils.security import (
    get_password_hash,
    verify_password,
    generate_reset_token,
    hash_reset_token,
)
from ..core.exception import (
    ResourceNotFoundException,
    DuplicateResourceException,
    BadRequestException,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations."""

    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.community_repo = CommunityRepository(db)

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.user_repo.get(user_id)

    def create_user(self, user_data: UserCreate) -> User:
        """
        Create a new user.

        Validates that the email is unique (ignoring case).
        Hashes the password before storing.
        """
        if self.user_repo.email_exists(user_data.email):
            raise DuplicateResourceException("User", user_data.email)

        user = User(
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            name=user_data.name,
            is_active=True,
        )

        user = self.user_repo.create(user)
        logger.info("Registered user %s", user.id)
        return user

    def get_communities(self, user_id: int) -> List[dict]:
        """Accepted communities of a user with their role in each."""
        return [
            {"id": community.id, "name": community.name, "role": role.value}
            for community, role in self.community_repo.get_user_communities(user_id)
        ]

    def update_user(self, user_id: int, user_data: UserUpdate) -> User:
        """Update name, email and phone. The new email must not belong to someone else."""
        user = self.user_repo.get(user_id)
        if not user:
            raise ResourceNotFoundException("User", user_id)

        if self.user_repo.email_exists(user_data.email, exclude_user_id=user_id):
            raise DuplicateResourceException("User", user_data.email)

        update_data = user_data.model_dump(exclude_unset=True)
        update_data["email"] = user_data.email.lower()

        updated_user = self.user_repo.update(user_id, update_data)
        if updated_user is None:
            raise ResourceNotFoundException("User", user_id)
        return updated_user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.
        Returns User if credentials are valid, None otherwise.
        """
        user = self.user_repo.get_by_email(email)

        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        """Change user password after checking the current one."""
        user = self.user_repo.get(user_id)

        if not user:
            raise ResourceNotFoundException("User", user_id)

        if not verify_password(current_password, user.hashed_password):
            raise BadRequestException("Current password is incorrect")

        updated_user = self.user_repo.update_password(user_id, get_password_hash(new_password))
        if updated_user is None:
            raise ResourceNotFoundException("User", user_id)

        logger.info("User %s changed their password", user_id)
        return updated_user

    def create_reset_token(self, email: str) -> Optional[Tuple[User, str]]:
        """
        Issue a password-reset token for the account with this email.

        Returns:
            (user, raw token) to be mailed, or None when no active account matches.
            Only the token digest is stored.
        """
        user = self.user_repo.get_by_email(email)
        if not user or not user.is_active:
            return None

        token = generate_reset_token()
        expires_at = self.clock.now() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        self.user_repo.set_reset_token(user, hash_reset_token(token), expires_at)

        logger.info("Issued password reset token for user %s", user.id)
        return user, token

    def reset_password(self, token: str, new_password: str) -> User:
        """
        Replace the password of the user holding an unexpired reset token.

        Raises:
            BadRequestException: If the token is unknown or expired
        """
        user = self.user_repo.get_by_reset_token_hash(hash_reset_token(token))
        expires_at = ensure_utc(user.reset_token_expires_at) if user else None

        if not user or expires_at is None or expires_at < self.clock.now():
            raise BadRequestException("Invalid or expired reset token")

        user.hashed_password = get_password_hash(new_password)
        self.user_repo.set_reset_token(user, None, None)

        logger.info("User %s reset their password", user.id)
        return user
