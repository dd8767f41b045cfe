# tests/conftest.py
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from naga_health.database import Base
from naga_health.models import triage  # import your models to register with Base
from naga_health.models.intake import BookingRequest, IntakeData
from naga_health.services.booking_store import BookingStore
from naga_health.services.redis_client import BookingRepository

START = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def engine():
    # one shared connection so TestClient threads see the same in-memory db
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="session")
def tables(engine):
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine, tables):
    """Provides a transactional scope around each test."""
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection)
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


class FakeClock:
    """Deterministic clock; each test moves it forward explicitly."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int) -> None:
        self.now += timedelta(minutes=minutes)


class FakeRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def saved():
    """Every list handed to the store's save callback, in order."""
    return []


@pytest.fixture
def store(clock, saved):
    return BookingStore(save=saved.append, clock=clock)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def repository(fake_redis):
    return BookingRepository(client=fake_redis)


@pytest.fixture
def make_intake():
    def _make(**overrides) -> IntakeData:
        data = {
            "patientType": "Adult",
            "primaryConcern": "Cough and colds",
            "firstName": "Juan",
            "lastName": "Dela Cruz",
            "birthDate": "1990-03-15",
            "sex": "Male",
            "barangay": "Abella",
            "symptoms": ["Cough", "Fever"],
            "additionalDetails": "Started three days ago",
            "consultationMode": "In-Person",
        }
        data.update(overrides)
        return IntakeData.model_validate(data)

    return _make


@pytest.fixture
def request_for():
    def _make(facility_id="bhs-abella", date="2024-06-01", time_slot="08:00 AM", **extra) -> BookingRequest:
        return BookingRequest(facility_id=facility_id, date=date, time_slot=time_slot, **extra)

    return _make
