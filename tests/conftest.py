"""Shared test fixtures and configuration."""
import os

# Point the application store at an in-memory database before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from meetstake.main import app  # noqa: E402
from meetstake.db.base import Base  # noqa: E402
from meetstake.api.deps import get_db  # noqa: E402
from meetstake.core import config  # noqa: E402
from meetstake.core.rate_limit import limiter  # noqa: E402
from meetstake.core.security import ADMIN_COOKIE_NAME, create_access_token  # noqa: E402
from tests.utils import make_meeting  # noqa: E402


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    if "rate_limit" in request.keywords:
        limiter.reset()
        limiter.enabled = True
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
        limiter.enabled = True


@pytest.fixture
def override_settings(monkeypatch):
    """Replace the application settings for one test: ``override_settings(ALLOW_CODE_REGENERATION=True)``."""
    def _override(**values):
        settings = config.Settings(**values)
        monkeypatch.setattr(config, "settings", settings)
        return settings
    return _override


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def meeting(db_session):
    """A meeting on the fixed timeline with a required stake of 10."""
    return make_meeting(db_session)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    """Generate a valid admin JWT token."""
    return create_access_token({"is_admin": True})


@pytest.fixture
def admin_client(client, admin_token):
    """Create a test client with admin cookie already set."""
    client.cookies.set(ADMIN_COOKIE_NAME, admin_token)
    return client
