from __future__ import annotations

import os

# Settings are read at import time; point everything at a throwaway database first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["TENANT_MODE"] = "shared"
os.environ["ENVIRONMENT"] = "test"
os.environ["OFF_GRID_POLICY"] = "reject"

import pytest
from fastapi.testclient import TestClient

from core.database import ENGINE, SessionLocal
from core.security import create_access_token
from main import app
from models import Base, Group, User
from services.slot_catalog import SlotCatalog


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(ENGINE)
    Base.metadata.create_all(ENGINE)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog() -> SlotCatalog:
    return SlotCatalog.from_times("08:00", "22:30", 30)


def _make_user(db, *, username: str, role: str, password_hash: str = "!") -> User:
    user = User(username=username, password_hash=password_hash, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(user_id=user.id, username=user.username, role=user.role, tenant_id=None)


@pytest.fixture
def admin_user(db) -> User:
    return _make_user(db, username="admin", role="ADMIN")


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_client(admin_user) -> TestClient:
    c = TestClient(app)
    c.headers.update({"Authorization": f"Bearer {_token_for(admin_user)}"})
    return c


@pytest.fixture
def user_client(db) -> TestClient:
    user = _make_user(db, username="teacher", role="USER")
    c = TestClient(app)
    c.headers.update({"Authorization": f"Bearer {_token_for(user)}"})
    return c


@pytest.fixture
def make_group(db):
    def _make(name: str, *, subject_id: int | None, teacher_id: int | None, education_level: str | None, students=()):
        group = Group(
            name=name,
            subject_id=subject_id,
            teacher_id=teacher_id,
            education_level=education_level,
            students_assigned=list(students),
        )
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    return _make


@pytest.fixture
def table_id(admin_client) -> int:
    res = admin_client.post("/api/schedule-tables/", json={"name": "Salle 1"})
    assert res.status_code == 200, res.text
    return res.json()["id"]


@pytest.fixture
def cell_payload(table_id):
    def _payload(**overrides):
        data = {
            "table_id": table_id,
            "day_of_week": 1,
            "start_time": "09:00",
            "end_time": "10:30",
            "education_level": "B",
            "subject_id": 10,
            "teacher_id": 7,
        }
        data.update(overrides)
        return data

    return _payload
