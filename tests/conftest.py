"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- Users of every role and their auth headers
- Mocked Celery queueing
"""

import os

# Must be set before the app (and its engine) is imported
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import create_access_token, get_password_hash
from app.models.user import User, UserRole
import app.models  # noqa: F401
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "SecurePass123!"


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    All tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """
    FastAPI test client with overridden database dependency.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def mock_queue(monkeypatch):
    """
    Replace Celery queueing so tests never need Redis.

    Records every queued (task name, args) pair; set mock_queue.accept to
    False to simulate a broker outage.
    """
    class QueueRecorder:
        accept = True

        def __init__(self):
            self.calls = []

        def __call__(self, task, *args, **kwargs):
            self.calls.append((task.name, args))
            return self.accept

    recorder = QueueRecorder()
    monkeypatch.setattr("app.services.backup_service.queue_task_safely", recorder)
    return recorder


@pytest.fixture
def make_user(db_session):
    """
    Factory for users.

    Usage:
        teacher = make_user(UserRole.TEACHER, first_name="Ada")
    """
    def _make_user(
        role: UserRole = UserRole.STUDENT,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        approved: bool = True,
        is_active: bool = True,
        is_system_owner: bool = False,
        **profile
    ) -> User:
        profile.setdefault("first_name", role.value.title())
        profile.setdefault("last_name", "Tester")
        user = User(
            id=uuid.uuid4(),
            email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@school.edu",
            hashed_password=get_password_hash(password),
            role=role,
            approved=approved,
            is_active=is_active,
            is_system_owner=is_system_owner,
            **profile
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    """Build Bearer headers with a fresh access token for a user."""
    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@school.edu", first_name="Gagana", last_name="Manjula")


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.ADMIN, email="owner@school.edu", first_name="Olive", last_name="Owner", is_system_owner=True)


@pytest.fixture
def moderator(make_user):
    return make_user(UserRole.MODERATOR, email="moderator@school.edu")


@pytest.fixture
def teacher(make_user):
    return make_user(UserRole.TEACHER, email="teacher@school.edu", first_name="Tom", last_name="Teacher", department="Science")


@pytest.fixture
def student(make_user):
    return make_user(UserRole.STUDENT, email="student@school.edu", first_name="Sam", last_name="Student", student_number="S-1001", grade="10")


@pytest.fixture
def parent(make_user):
    return make_user(UserRole.PARENT, email="parent@school.edu", first_name="Pat", last_name="Parent")
