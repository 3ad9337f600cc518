# tests/conftest.py

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from salonbook.config import settings
from salonbook.core.guard import BookingGuard
from salonbook.db import get_session, init_db
from salonbook.deps import get_booking_guard, get_now
from salonbook.main import app

# Fixed "now" for API tests: Monday 2030-01-07 08:00 in the salon timezone
FIXED_NOW = datetime(2030, 1, 7, 8, 0, tzinfo=settings.tz)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def guard():
    return BookingGuard(lock_timeout=1.0)


@pytest.fixture
def client(engine, guard):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    app.dependency_overrides[get_booking_guard] = lambda: guard

    # no context manager: the lifespan would create tables on the file database
    yield TestClient(app)

    app.dependency_overrides.clear()
