"""
Pytest configuration and fixtures.
Provides test database, client, and common test utilities.
"""

import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DISABLE_BOOTSTRAP_USERS", "true")
os.environ.setdefault("REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS", "0")

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from storefront.core.config import settings  # noqa: E402
from storefront.db.session import get_session  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models.user import User, UserRole  # noqa: E402
from storefront.schemas.user import UserCreate  # noqa: E402
from storefront.services.user_service import UserService  # noqa: E402

API = settings.API_PREFIX


def login(client: TestClient, email: str, password: str) -> dict:
    """Log in through the API and return the token body; leaves no cookies behind."""
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="engine")
def engine_fixture():
    """
    Create an in-memory SQLite engine shared by all connections of a test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine) -> Generator[Session, None, None]:
    """
    Create a test database session.
    """
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with dependency overrides.
    """

    def get_session_override() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(session: Session) -> User:
    """
    Create a test user.
    """
    user_create = UserCreate(
        username="Test User",
        email="test@example.com",
        password="testpassword123",
    )
    return UserService.create(session, user_create)


@pytest.fixture(name="test_admin")
def test_admin_fixture(session: Session) -> User:
    """
    Create a test admin user.
    """
    user_create = UserCreate(
        username="Admin User",
        email="admin@example.com",
        password="adminpassword123",
        role=UserRole.ADMIN,
    )
    return UserService.create(session, user_create)


@pytest.fixture(name="user_tokens")
def user_tokens_fixture(client: TestClient, test_user: User) -> dict:
    """
    Log in as the regular user; returns the login response body.
    """
    return login(client, "test@example.com", "testpassword123")


@pytest.fixture(name="user_token")
def user_token_fixture(user_tokens: dict) -> str:
    """
    Get an access token for a regular user.
    """
    return user_tokens["accessToken"]


@pytest.fixture(name="admin_token")
def admin_token_fixture(client: TestClient, test_admin: User) -> str:
    """
    Get an access token for an admin user.
    """
    return login(client, "admin@example.com", "adminpassword123")["accessToken"]
