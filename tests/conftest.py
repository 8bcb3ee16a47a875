import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from app import app  # noqa: E402
from auth.security import create_access_token, get_password_hash  # noqa: E402
from config.dependencies import get_now  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from models.appointment import Appointment  # noqa: E402
from models.enums import AppointmentStatus, Role  # noqa: E402
from models.user import User  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 0)
TOMORROW_10 = datetime(2026, 3, 3, 10, 0)
TOMORROW_11 = datetime(2026, 3, 3, 11, 0)
YESTERDAY_10 = NOW - timedelta(days=1, hours=-1)

PASSWORD = "Password123"
_PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_now] = lambda: NOW
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role: Role = Role.CLIENT, name: str | None = None, **fields) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.value}-{counter['n']}",
            email=fields.pop("email", f"{role.value}{counter['n']}@example.com"),
            hashed_password=_PASSWORD_HASH,
            role=role,
            specialties=fields.pop("specialties", []),
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_appointment(db_session):
    def _make_appointment(client: User, counselor: User, scheduled_at: datetime = TOMORROW_10,
                          status: AppointmentStatus = AppointmentStatus.SCHEDULED, **fields) -> Appointment:
        appointment = Appointment(
            client_id=client.id,
            counselor_id=counselor.id,
            scheduled_at=scheduled_at,
            duration_minutes=fields.pop("duration_minutes", 60),
            status=status,
            **fields,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _make_appointment


def auth_header(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}
