"""Pytest fixtures and configuration for taskboard tests."""

import os

# Keep the application's own engine off the filesystem during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from taskboard.database.database import Base, get_db, init_db
from taskboard.database.repository import TaskRepository
from taskboard.database.user_repository import UserRepository
from taskboard.engine.relationships import RelationshipSynchronizer
from taskboard.models.factory import new_task, new_user

from tests.fakes import InMemoryTaskStore, InMemoryUserStore


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    init_db(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def task_store():
    return InMemoryTaskStore()


@pytest.fixture
def synchronizer(user_store, task_store):
    """Synchronizer wired to in-memory fakes."""
    return RelationshipSynchronizer(user_store, task_store)


@pytest.fixture
def deadline():
    """A deadline one week out, truncated to whole seconds."""
    return (datetime.utcnow() + timedelta(days=7)).replace(microsecond=0)


@pytest.fixture
def make_user(user_store):
    """Store a user in the fake user store and return it."""
    counter = {"n": 0}

    def _make(name="Alice", pending_tasks=None):
        counter["n"] += 1
        user = new_user(name, f"user{counter['n']}@example.com", pending_tasks)
        return user_store.create(user)

    return _make


@pytest.fixture
def make_task(task_store, deadline):
    """Store a task in the fake task store and return it."""
    def _make(name="Task", assigned_user=None, assigned_user_name=None, completed=False):
        task = new_task(
            name=name,
            deadline=deadline,
            completed=completed,
            assigned_user=assigned_user,
            assigned_user_name=assigned_user_name,
        )
        return task_store.create(task)

    return _make


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with overridden database dependency."""
    from taskboard.api.app import app

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
