import pytest
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.services.authService import AuthService
from app.services.userService import UserService
from app.schemas.user import UserCreate, UserUpdate
from app.core.exception import (
    AuthenticationException,
    AuthorizationException,
    BadRequestException,
    DuplicateResourceException,
)
from app.utils.security import decode_access_token, hash_reset_token, verify_password


@pytest.mark.unit
class TestAuthService:
    """Unit tests for AuthService."""

    def test_register_success(self, db_session: Session):
        """Test successful user registration."""
        auth_service = AuthService(db_session)
        user_data = UserCreate(
            email="NewUser@Example.com",
            password="Secret123",
            name="  New User  "
        )

        user, token = auth_service.register(user_data)

        assert user.email == "newuser@example.com"
        assert user.name == "New User"
        assert user.is_active is True
        assert user.hashed_password != "Secret123"  # Should be hashed
        assert token.access_token and token.refresh_token

    def test_register_duplicate_email_ignores_case(self, db_session: Session, admin_user):
        """Test registration with an existing email in another case fails."""
        auth_service = AuthService(db_session)
        user_data = UserCreate(email="ALICE@example.com", password="Secret123", name="Other")

        with pytest.raises(DuplicateResourceException):
            auth_service.register(user_data)

    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_register_rejects_weak_password(self, password):
        """Test the password policy on the registration schema."""
        with pytest.raises(ValidationError):
            UserCreate(email="x@example.com", password=password, name="X")

    def test_login_success(self, db_session: Session, admin_user, user_password):
        """Test successful login with valid credentials."""
        auth_service = AuthService(db_session)

        token = auth_service.login("alice@example.com", user_password)

        assert token.token_type == "bearer"
        payload = decode_access_token(token.access_token)
        assert int(payload["sub"]) == admin_user.id
        assert payload["type"] == "access"

    def test_login_email_is_case_insensitive(self, db_session: Session, admin_user, user_password):
        """Test login with the email in upper case."""
        token = AuthService(db_session).login("ALICE@EXAMPLE.COM", user_password)

        assert token.access_token is not None

    def test_login_invalid_password(self, db_session: Session, admin_user):
        """Test login with incorrect password."""
        with pytest.raises(AuthenticationException) as exc_info:
            AuthService(db_session).login("alice@example.com", "Wrong1234")

        assert "Invalid email or password" in str(exc_info.value.detail)

    def test_login_unknown_email(self, db_session: Session, user_password):
        """Test login with an email nobody registered."""
        with pytest.raises(AuthenticationException):
            AuthService(db_session).login("nobody@example.com", user_password)

    def test_login_inactive_user(self, db_session: Session, make_user, user_password):
        """Test login is refused for deactivated accounts."""
        make_user("gone@example.com", "Gone", is_active=False)

        with pytest.raises(AuthorizationException):
            AuthService(db_session).login("gone@example.com", user_password)

    def test_refresh_access_token(self, db_session: Session, admin_user):
        """Test a refresh token yields a new access token."""
        auth_service = AuthService(db_session)
        token = auth_service.issue_tokens(admin_user)

        refreshed = auth_service.refresh_access_token(token.refresh_token)

        payload = decode_access_token(refreshed.access_token)
        assert int(payload["sub"]) == admin_user.id
        assert payload["type"] == "access"

    def test_refresh_rejects_access_token(self, db_session: Session, admin_user):
        """Test an access token cannot be used as a refresh token."""
        auth_service = AuthService(db_session)
        token = auth_service.issue_tokens(admin_user)

        with pytest.raises(AuthenticationException):
            auth_service.refresh_access_token(token.access_token)

    def test_verify_token_rejects_refresh_token(self, db_session: Session, admin_user):
        """Test a refresh token does not identify a caller."""
        auth_service = AuthService(db_session)
        token = auth_service.issue_tokens(admin_user)

        assert auth_service.verify_token(token.access_token).id == admin_user.id
        with pytest.raises(AuthenticationException):
            auth_service.verify_token(token.refresh_token)


@pytest.mark.unit
class TestUserService:
    """Unit tests for profile and password management."""

    def test_update_profile(self, db_session: Session, admin_user):
        """Test name, email and phone are updated."""
        service = UserService(db_session)

        updated = service.update_user(
            admin_user.id,
            UserUpdate(email="Alice.New@example.com", name="Alice", phone="555-0100"),
        )

        assert updated.email == "alice.new@example.com"
        assert updated.phone == "555-0100"

    def test_update_profile_keeps_own_email(self, db_session: Session, admin_user):
        """Test re-submitting your own email is not a duplicate."""
        updated = UserService(db_session).update_user(
            admin_user.id, UserUpdate(email="alice@example.com", name="Alice A.")
        )

        assert updated.name == "Alice A."

    def test_update_profile_duplicate_email(self, db_session: Session, admin_user, resident_user):
        """Test taking another user's email fails."""
        with pytest.raises(DuplicateResourceException):
            UserService(db_session).update_user(
                admin_user.id, UserUpdate(email="carol@example.com", name="Alice")
            )

    def test_change_password(self, db_session: Session, admin_user, user_password):
        """Test the password changes when the current one matches."""
        service = UserService(db_session)

        service.change_password(admin_user.id, user_password, "Another456")

        db_session.refresh(admin_user)
        assert verify_password("Another456", admin_user.hashed_password)

    def test_change_password_wrong_current(self, db_session: Session, admin_user):
        """Test a wrong current password is rejected."""
        with pytest.raises(BadRequestException) as exc_info:
            UserService(db_session).change_password(admin_user.id, "Nope12345", "Another456")

        assert "Current password is incorrect" in str(exc_info.value.detail)

    def test_reset_token_unknown_email(self, db_session: Session):
        """Test no token is issued for an unknown email."""
        assert UserService(db_session).create_reset_token("ghost@example.com") is None

    def test_reset_password_flow(self, db_session: Session, admin_user, clock):
        """Test the mailed token resets the password once."""
        service = UserService(db_session, clock)

        user, token = service.create_reset_token("alice@example.com")

        assert user.id == admin_user.id
        assert user.reset_token_hash == hash_reset_token(token)

        service.reset_password(token, "Brand3New")

        db_session.refresh(admin_user)
        assert verify_password("Brand3New", admin_user.hashed_password)
        assert admin_user.reset_token_hash is None

        with pytest.raises(BadRequestException):
            service.reset_password(token, "Again4New")

    def test_reset_password_expired_token(self, db_session: Session, admin_user, clock):
        """Test a token past its expiry is refused."""
        service = UserService(db_session, clock)
        _, token = service.create_reset_token("alice@example.com")

        clock.advance(minutes=61)

        with pytest.raises(BadRequestException) as exc_info:
            service.reset_password(token, "Brand3New")

        assert "Invalid or expired reset token" in str(exc_info.value.detail)
