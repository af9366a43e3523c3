"""
Shared pytest fixtures.

Uses a SQLite database so no Postgres is required for tests. Tables are
emptied after every test; time is driven by a ManualClock.
"""
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from habitlog.db.base import Base
from habitlog.main import create_app
from habitlog.services.clock import Clock, Now
from habitlog.services.day_state import DayState
from habitlog.services.persistence import PersistenceGateway
from habitlog.services.registry import DayStateRegistry
from habitlog.services.scheduler import RolloverScheduler
import habitlog.models  # noqa: F401

SQLITE_URL = "sqlite:///./test_habitlog.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Saturday, mid-morning: no snapshot hour, no day boundary.
TODAY = date(2026, 3, 14)
YESTERDAY = date(2026, 3, 13)


class ManualClock(Clock):
    """Clock whose time only moves when a test assigns `current`."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> Now:
        return Now(self.current)


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return ManualClock(datetime(2026, 3, 14, 10, 30))


@pytest.fixture()
def gateway():
    return PersistenceGateway(TestingSessionLocal)


@pytest.fixture()
def registry(clock):
    reg = DayStateRegistry(clock)
    reg.install("mikel", DayState.fresh(TODAY))
    reg.install("eneko", DayState.fresh(TODAY))
    return reg


@pytest.fixture()
def scheduler(registry, gateway, clock):
    return RolloverScheduler(registry, gateway, clock)


@pytest.fixture()
def app(clock):
    return create_app(
        session_factory=TestingSessionLocal,
        clock=clock,
        start_scheduler=False,
    )


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
