import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set required environment variables for testing
os.environ["API_V1_STR"] = "/api/v1"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BREVO_API_KEY"] = ""

from app.main import app
from app.database import get_db
from app.core.clock import FixedClock, get_clock
from app.models.base import Base
from app.models.community import MemberRole
from app.models.user import User
from app.schemas.community import CommunityCreate
from app.services.authService import AuthService
from app.services.community_service import CommunityService
from app.utils.security import get_password_hash

TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "Passw0rd1"
TEST_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """
    A fresh in-memory database per test.

    Services commit their own units of work, so each test gets its own schema
    instead of an outer transaction to roll back.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def clock():
    """Frozen clock shared by the services and the API."""
    return FixedClock(TEST_NOW)


@pytest.fixture
def db_session(engine, clock):
    """Session shared by the test body and every request it makes."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    def override_get_db():
        try:
            yield session
        finally:
            pass  # Closed after the test

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield session

    session.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(db_session):
    """Create a FastAPI TestClient with database session override."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def user_password():
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow; hash the shared test password once."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def make_user(db_session, password_hash):
    """Factory creating active users with TEST_PASSWORD."""
    def _make_user(email: str, name: str, is_active: bool = True) -> User:
        user = User(
            email=email.lower(),
            name=name,
            hashed_password=password_hash,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("alice@example.com", "Alice Admin")


@pytest.fixture
def board_user(make_user):
    return make_user("bob@example.com", "Bob Board")


@pytest.fixture
def resident_user(make_user):
    return make_user("carol@example.com", "Carol Resident")


@pytest.fixture
def outsider_user(make_user):
    return make_user("dave@example.com", "Dave Outsider")


@pytest.fixture
def community(db_session, admin_user, board_user, resident_user):
    """
    "Oak Street HOA" with Alice as admin, Bob on the board and Carol as a resident.
    All three memberships are accepted.
    """
    service = CommunityService(db_session)
    created = service.create_community(
        admin_user, CommunityCreate(name="Oak Street HOA", address="1 Oak Street")
    )
    admin_ctx = service.get_context(admin_user, created.id)

    for user in (board_user, resident_user):
        service.join_by_invite_code(user, created.invite_code)
        service.accept_member(admin_ctx, user.id)

    service.change_role(admin_ctx, board_user.id, MemberRole.BOARD_MEMBER)
    db_session.refresh(created)
    return created


@pytest.fixture
def context_for(db_session):
    """Build the AuthorizationContext of a user in a community."""
    def _context_for(user: User, community):
        return CommunityService(db_session).get_context(user, community.id)

    return _context_for


@pytest.fixture
def headers_for(db_session):
    """Bearer headers for a user, issued without going through login."""
    def _headers_for(user: User) -> dict:
        token = AuthService(db_session).issue_tokens(user)
        return {"Authorization": f"Bearer {token.access_token}"}

    return _headers_for


@pytest.fixture
def auth_headers(headers_for, admin_user):
    """Get authorization headers for the community admin."""
    return headers_for(admin_user)
