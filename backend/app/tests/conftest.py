"""Pytest configuration for service and HTTP tests

WHAT: Provides shared fixtures for service-level and endpoint tests
WHY: Ensures consistent test setup, database isolation and logged-in clients
REFERENCES:
    - app/main.py: FastAPI application
    - app/database.py: Database configuration
    - app/deps.py: Settings and request identity
"""

import pytest
import os
from datetime import timedelta
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Ensure backend is in path
import sys
from pathlib import Path
BACKEND_ROOT = Path(__file__).resolve().parents[2]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Set test environment (before anything imports app.deps / app.database)
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
# Must be URL-safe base64-encoded 32-byte string (Settings validates it)
os.environ.setdefault("TOKEN_ENCRYPTION_KEY", "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA=")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
# Cheapest bcrypt cost passlib accepts; keeps the suite fast
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def test_db_engine():
    """Create in-memory test database engine.

    StaticPool keeps one connection so the TestClient worker thread sees the
    same in-memory database as the test body.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from app.database import Base
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )

    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Settings / Service Fixtures
# ============================================================================

@pytest.fixture
def settings():
    from app.deps import get_settings
    return get_settings()


@pytest.fixture
def authenticator(test_db_session, settings):
    from app.services.auth_service import Authenticator
    return Authenticator(test_db_session, settings)


@pytest.fixture
def directory(test_db_session):
    from app.services.influencer_service import InfluencerDirectory
    return InfluencerDirectory(test_db_session)


@pytest.fixture
def campaign_engine(test_db_session):
    from app.services.campaign_service import CampaignEngine
    return CampaignEngine(test_db_session)


@pytest.fixture
def registry(test_db_session):
    from app.services.reminder_service import ReminderRegistry
    return ReminderRegistry(test_db_session)


@pytest.fixture
def analytics(test_db_session):
    from app.services.analytics_service import AnalyticsService
    return AnalyticsService(test_db_session)


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(test_db_session):
    """Create FastAPI test application."""
    from app.main import create_app

    test_app = create_app()

    # Override database dependency; the session outlives each request so
    # fixture objects stay attached
    from app.database import get_db

    def override_get_db():
        yield test_db_session

    test_app.dependency_overrides[get_db] = override_get_db

    return test_app


@pytest.fixture
def client(app) -> TestClient:
    """Create TestClient for HTTP testing."""
    return TestClient(app)


# ============================================================================
# User Fixtures
# ============================================================================

TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "secret1"


@pytest.fixture
def test_user(authenticator):
    """Registered user a@x.com / secret1."""
    return authenticator.register(TEST_EMAIL, TEST_PASSWORD, "Alex").user


@pytest.fixture
def other_user(authenticator):
    return authenticator.register("b@y.com", "secret2", "Blair").user


@pytest.fixture
def auth_client(client, test_user) -> TestClient:
    """TestClient holding a valid auth-token cookie for test_user."""
    response = client.post("/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def other_client(app, other_user) -> TestClient:
    """Separate cookie jar logged in as other_user."""
    other = TestClient(app)
    response = other.post("/auth/login", json={"email": "b@y.com", "password": "secret2"})
    assert response.status_code == 200
    return other


@pytest.fixture
def expired_token(test_user, settings):
    """A correctly signed session token that expired an hour ago."""
    from app.security import create_access_token

    return create_access_token(
        {"sub": str(test_user.id), "userId": str(test_user.id), "email": test_user.email},
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=-int(timedelta(hours=1).total_seconds() // 60),
    )
