# votestreak/conftest.py
import os
from datetime import datetime, timezone
from uuid import uuid4

# Settings are read at import time; pin the test environment first.
os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ALLOW_USER_ID_HEADER", "true")

import pytest  # noqa: E402
from sqlalchemy import delete  # noqa: E402

# "now" for every test that takes the clock fixture.
FIXED_NOW = datetime(2025, 3, 18, 15, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    """
    Point the engine at the test database and create all tables once per session.
    """
    from votestreak.core.database import init_engine, create_all_tables

    init_engine(os.environ["TEST_DATABASE_URL"])
    create_all_tables()
    yield


@pytest.fixture(scope="function", autouse=True)
def reset_db():
    """
    Clear every table before each test (children first for foreign keys).
    """
    from votestreak.core.database import get_db_session, metadata

    def _clear():
        with get_db_session() as session:
            for table in reversed(metadata.sorted_tables):
                session.execute(delete(table))

    _clear()
    yield
    _clear()


@pytest.fixture
def clock():
    from votestreak.core.clock import FixedClock

    return FixedClock(FIXED_NOW)


@pytest.fixture
def ledger(clock):
    from votestreak.features.votes.service import VoteLedger

    return VoteLedger(clock=clock)


@pytest.fixture
def make_owner():
    """Factory: a user with one primary identity scope. Returns (user_id, scope_id)."""
    from votestreak.features.identities.service import create_user, create_identity

    def _make(primary: bool = True):
        user = create_user(f"user-{uuid4()}@example.com")
        scope = create_identity(user.id, primary=primary)
        return user.id, scope.id

    return _make


@pytest.fixture
def client(clock):
    from fastapi.testclient import TestClient
    from votestreak.main import app
    from votestreak.api.votes import get_clock

    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_clock, None)
