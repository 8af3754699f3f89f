"""
Pytest configuration and fixtures for all tests.
Environment must be set before pointpoll.config is imported.
"""

import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="pointpoll-logs-"))
os.environ.setdefault("COMPLETION_POLICY", "full")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from pointpoll.core.security import create_access_token, hash_password
from pointpoll.database import Base, get_db
from pointpoll.models import User
from pointpoll.services import poll_service

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema and a session for direct service calls."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db):
    """Opens extra sessions on the test database, e.g. a second concurrent request."""
    return TestingSessionLocal


@pytest.fixture
def client(db):
    """TestClient with one session per request on the test database."""

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory for users."""
    counter = {"n": 0}

    def _make_user(email=None, full_name=None, password="testpass123"):
        counter["n"] += 1
        user = User(
            email=email or f"voter{counter['n']}@example.com",
            full_name=full_name or f"Voter {counter['n']}",
            hashed_password=hash_password(password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    """Create a test user."""
    return make_user(email="test@example.com", full_name="Test User")


def _bearer(user):
    token = create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Authorization headers for any user."""
    return _bearer


@pytest.fixture
def auth_headers(user):
    return _bearer(user)


@pytest.fixture
def poll(db, user):
    """A poll with three choices in creation order."""
    return poll_service.create_poll(
        db, user, "Team lunch", "Where should we eat?", ["Pizza", "Sushi", "Tacos"]
    )


@pytest.fixture
def choice_ids(poll):
    return [c.id for c in poll.choices]
