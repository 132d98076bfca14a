import os

# must be set before the app (and its engine) is imported
TEST_DB_FILE = "test_rescare.db"
os.environ["DATABASE_URL"] = f"sqlite:///./{TEST_DB_FILE}"
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STRICT_STATUS_FLOW"] = "false"

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from app.core.config import settings
from app.db.base import Base
from app.db.init_db import seed_admin
from app.db.session import SessionLocal, engine
from app.main import app
from app.models.admin import Admin
from app.models.request import MaintenanceRequest
from app.models.student import Student
from app.services.requests import RequestService
from tests.data import STUDENT_A, STUDENT_B

ADMIN_EMAIL = settings.ADMIN_EMAIL
ADMIN_PASSWORD = settings.ADMIN_PASSWORD


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Clean tables and re-seed the admin for each test."""
    db = SessionLocal()
    try:
        # child -> parent
        db.query(MaintenanceRequest).delete()
        db.query(Student).delete()
        db.query(Admin).delete()
        db.commit()
        seed_admin(db)
        yield
    finally:
        db.close()


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


class RecordingBroadcaster:
    """Stands in for the realtime broadcaster; remembers every fan-out."""

    def __init__(self):
        self.sent = []

    async def fan_out(self, topics, event):
        self.sent.append(([str(t) for t in topics], event.kind.value, event.payload))
        return len(topics)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def tasks():
    return BackgroundTasks()


@pytest.fixture()
def service(db, broadcaster, tasks):
    return RequestService(db, broadcaster, tasks)


def register(client, payload: dict):
    return client.post("/api/students/register", json=payload)


def login(client, email: str, password: str) -> dict:
    r = client.post("/api/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture()
def student_a(client):
    r = register(client, STUDENT_A)
    assert r.status_code == 200, r.text
    return login(client, STUDENT_A["email"], STUDENT_A["password"])


@pytest.fixture()
def student_b(client):
    r = register(client, STUDENT_B)
    assert r.status_code == 200, r.text
    return login(client, STUDENT_B["email"], STUDENT_B["password"])


@pytest.fixture()
def admin(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
