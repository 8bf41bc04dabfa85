import os

# Keep the app's own engine off disk; every request goes through the test engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from copa_api.config import Settings, get_settings  # noqa: E402
from copa_api.database import get_session  # noqa: E402
from copa_api.main import app  # noqa: E402
from copa_api.models.user_session import UserSession  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"
ADMIN_TOKEN = "admin-session-token"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables created and dropped per test (see session_fixture)
# 4. App dependencies overridden to use test_engine and TEST_SETTINGS
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TEST_SETTINGS = Settings(database_url=TEST_DATABASE_URL, bracket_draw_seed=2026)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="settings")
def settings_fixture():
    return TEST_SETTINGS


@pytest.fixture(name="client")
def client_fixture(session: Session, settings: Settings):
    """Anonymous test client with overridden database session and settings

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="admin_client")
def admin_client_fixture(client: TestClient, session: Session):
    """Test client carrying an active admin session cookie"""
    session.add(
        UserSession(
            token=ADMIN_TOKEN,
            user_email="admin@copa.test",
            role="admin",
            expires_at=datetime.utcnow() + timedelta(days=30),
        )
    )
    session.commit()
    client.cookies.set(TEST_SETTINGS.session_cookie_name, ADMIN_TOKEN)
    return client
