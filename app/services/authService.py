from sqlalchemy.orm import Session
from datetime import timedelta
from typing import Optional
from ..core.clock import Clock, system_clock
from ..models.user import User
from ..services.userService import UserService
from ..schemas.user import UserCreate, Token
from ..utils.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
)
from ..config import settings
from ..core.exception import AuthenticationException, AuthorizationException


class AuthService:
    """Service layer for authentication operations."""

    def __init__(self, db: Session, clock: Clock = system_clock):
        self.db = db
        self.user_service = UserService(db, clock)

    def issue_tokens(self, user: User) -> Token:
        """Create an access/refresh token pair for a user."""
        access_token = create_access_token(
            data={"sub": str(user.id), "email": user.email},
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        refresh_token = create_refresh_token(data={"sub": str(user.id)})

        return Token(
            access_token=access_token, token_type="bearer", refresh_token=refresh_token
        )

    def register(self, user_data: UserCreate) -> tuple:
        """
        Register a new user.
        Returns the created user and a token pair, so the client is signed in at once.
        """
        user = self.user_service.create_user(user_data)
        return user, self.issue_tokens(user)

    def login(self, email: str, password: str) -> Token:
        """
        Login user and return access token.
        """
        user = self.user_service.authenticate_user(email, password)

        if not user:
            raise AuthenticationException("Invalid email or password")

        if not user.is_active:
            raise AuthorizationException(message="Account is deactivated")

        return self.issue_tokens(user)

    def refresh_access_token(self, refresh_token: str) -> Token:
        """
        Refresh access token using refresh token.
        Returns new access token.
        """
        payload = decode_access_token(refresh_token)

        if payload is None or payload.get("type") != "refresh":
            raise AuthenticationException("Could not validate refresh token")

        user = self._user_from_payload(payload)

        new_access_token = create_access_token(
            data={"sub": str(user.id), "email": user.email},
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

        return Token(access_token=new_access_token, token_type="bearer")

    def verify_token(self, token: str) -> User:
        """
        Resolve the user behind an access token.
        Refresh tokens are not accepted here.
        """
        payload = decode_access_token(token)
        if payload is None or payload.get("type") == "refresh":
            raise AuthenticationException("Could not validate credentials")

        return self._user_from_payload(payload)

    def _user_from_payload(self, payload: dict) -> User:
        user_id_str: Optional[str] = payload.get("sub")
        if user_id_str is None:
            raise AuthenticationException("Could not validate credentials")

        try:
            user_id = int(user_id_str)
        except (ValueError, TypeError):
            raise AuthenticationException("Invalid token format")

        user = self.user_service.get_user_by_id(user_id)
        if user is None:
            raise AuthenticationException("User not found")

        if not user.is_active:
            raise AuthenticationException("Account is deactivated")

        return user
