"""
Shared fixtures.

The environment is pinned before simcal is imported: an in-memory SQLite
database (single shared connection), SMTP off and no reminder loop.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"
os.environ["SMTP_ENABLED"] = "false"
os.environ["REMINDER_DISPATCH_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from simcal.database import Base, SessionLocal, engine  # noqa: E402
from simcal.main import app  # noqa: E402
from simcal.models import Booking, BookingStatus, Priority, Simulator, User, UserRole, UserStatus  # noqa: E402
from simcal.utils.security import create_access_token, hash_password  # noqa: E402

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(
        role: UserRole = UserRole.P4,
        department: str = "Ops",
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password=hash_password(password),
            department=department,
            status=status,
        )
        user.apply_role(role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_booking(db):
    def _make(
        creator: User,
        start,
        end,
        simulator: Simulator = Simulator.SIM1,
        status: BookingStatus = BookingStatus.SCHEDULED,
        title: str = "Session",
        department: str | None = None,
        participants: list[User] | None = None,
    ) -> Booking:
        b = Booking(
            title=title,
            startTime=start,
            endTime=end,
            simulator=simulator,
            status=status,
            priority=Priority.P4,
            department=department or creator.department,
            createdById=creator.id,
        )
        b.participants = participants or []
        db.add(b)
        db.commit()
        db.refresh(b)
        return b

    return _make


def auth_headers(user: User, **kwargs) -> dict:
    token = create_access_token(user.id, user.role.value, **kwargs)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers
