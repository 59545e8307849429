"""Pytest fixtures and configuration for taskcore tests."""

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from taskcore.clock import FixedClock
from taskcore.database.database import Base
from taskcore.database.repository import TaskRepository
from taskcore.engine.lifecycle import InstanceLifecycleManager
from taskcore.engine.reconcile import BatchReconciler
from taskcore.models.recurrence import RecurrenceFrequency, RecurrenceRule
from taskcore.models.requests import TaskCreate


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TODAY = date(2024, 1, 1)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    from taskcore.database import models  # noqa: F401

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    return "other-user-456"


@pytest.fixture
def clock():
    """Clock frozen at midnight on 2024-01-01."""
    return FixedClock(TODAY)


@pytest.fixture
def task_repository(db_session: Session):
    return TaskRepository(db_session)


@pytest.fixture
def lifecycle(db_session: Session, clock):
    return InstanceLifecycleManager(db_session, clock=clock)


@pytest.fixture
def reconciler(db_session: Session, lifecycle):
    return BatchReconciler(db_session, lifecycle=lifecycle)


@pytest.fixture
def daily_series(lifecycle, test_user_id):
    """A daily series of 5 occurrences at 09:00-09:30 starting 2024-01-01.

    Returns (parent, children).
    """
    parent = lifecycle.create(
        TaskCreate(
            title="Standup",
            is_recurring=True,
            recurrence_rule=RecurrenceRule(frequency=RecurrenceFrequency.DAILY, count=5),
            scheduled_start_at=datetime(2024, 1, 1, 9, 0),
            scheduled_end_at=datetime(2024, 1, 1, 9, 30),
            is_all_day=False,
        ),
        test_user_id,
    )
    children = lifecycle.tasks.find_all_children_by_parent_id(parent.id)
    return parent, children
