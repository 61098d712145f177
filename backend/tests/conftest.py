import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from main import app

import models
from database import Base, get_db
from models import User
from auth import get_password_hash, create_access_token
from constants import ROLE_OWNER

# Setup in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db_session):
    """Create a FastAPI TestClient with overridden database dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_db, None)

@pytest.fixture
def make_user(db_session):
    """Factory creating registered users."""
    def _make_user(email, first_name=None, last_name=None):
        user = User(
            email=email,
            hashed_password=get_password_hash("password123"),
            first_name=first_name,
            last_name=last_name,
            is_active=True
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def test_user(make_user):
    """Create a test user and return the user object."""
    return make_user("test@example.com", "Test", "User")

@pytest.fixture
def other_user(make_user):
    return make_user("other@example.com", "Other", "Person")

def _bearer(user):
    access_token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {access_token}"}

@pytest.fixture
def headers_for():
    """Build authorization headers for any user."""
    return _bearer

@pytest.fixture
def auth_headers(test_user):
    """Return authorization headers for the test user."""
    return _bearer(test_user)

@pytest.fixture
def other_headers(other_user):
    return _bearer(other_user)

@pytest.fixture
def make_trip(db_session):
    """Factory creating a trip together with its owner attendee row."""
    def _make_trip(owner, name="Trip"):
        trip = models.Trip(user_id=owner.id, name=name, departure_date="2026-05-01")
        db_session.add(trip)
        db_session.commit()
        db_session.refresh(trip)
        db_session.add(models.TripAttendee(
            trip_id=trip.id,
            user_id=owner.id,
            email=owner.email,
            name=owner.email,
            role=ROLE_OWNER,
        ))
        db_session.commit()
        return trip
    return _make_trip

@pytest.fixture
def make_flight(db_session):
    def _make_flight(owner, trip=None, flight_number="UA100"):
        flight = models.Flight(
            user_id=owner.id,
            trip_id=trip.id if trip else None,
            airline="United",
            flight_number=flight_number,
        )
        db_session.add(flight)
        db_session.commit()
        db_session.refresh(flight)
        return flight
    return _make_flight

@pytest.fixture
def make_companion(db_session):
    """Factory creating a companion record and its creator's grant."""
    def _make_companion(creator, email, linked_user=None, can_view=True, can_edit=False, first_name=None, last_name=None):
        companion = models.TravelCompanion(
            email=email,
            first_name=first_name,
            last_name=last_name,
            name=first_name or email.split("@")[0],
            user_id=linked_user.id if linked_user else None,
            created_by=creator.id,
        )
        companion.permissions.append(models.CompanionPermission(
            granted_by=creator.id, can_view=can_view, can_edit=can_edit
        ))
        db_session.add(companion)
        db_session.commit()
        db_session.refresh(companion)
        return companion
    return _make_companion
