import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from clinic_backend.auth.dependencies import get_current_user  # noqa: E402
from clinic_backend.database import Base  # noqa: E402
from clinic_backend.main import app  # noqa: E402
from clinic_backend.models import availability, booking, busy_slot, feedback, therapist, user  # noqa: E402,F401
from clinic_backend.models.user import User  # noqa: E402
from clinic_backend.routes.availability_routes import get_booking_service  # noqa: E402
from clinic_backend.services.booking_service import BookingService  # noqa: E402
from clinic_backend.services.store import SqlBookingStore  # noqa: E402

# Wednesday 7 January 2026, 08:00.
FIXED_NOW = datetime(2026, 1, 7, 8, 0)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(db_session) -> SqlBookingStore:
    return SqlBookingStore(db_session)


@pytest.fixture
def service(store, fixed_now) -> BookingService:
    return BookingService(store, clock=lambda: fixed_now)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_booking_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    def _login(user: User) -> User:
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture
def client_user() -> User:
    return User(id=7, email='client@example.com', role='client')


@pytest.fixture
def therapist_user() -> User:
    return User(id=2, email='therapist@example.com', role='therapist', therapist_id='t-1')
