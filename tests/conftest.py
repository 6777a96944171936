import os

# Configure before the application modules read the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["NOTIFICATION_LOCALE"] = "en"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import UserRole
from app.repositories.user_repository import UserRepository
from app.services.notification_service import NotificationService
from app.services.task_service import TaskService
from app.services.websocket_manager import websocket_manager
from app.utils.security import create_access_token, hash_password
from main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingPublisher:
    """Stands in for the real-time channel and remembers every publish"""

    def __init__(self):
        self.events = []

    def __call__(self, user_id, event, payload):
        self.events.append((user_id, event, payload))

    def for_user(self, user_id):
        return [payload for recipient, _, payload in self.events if recipient == user_id]

    def types_for(self, user_id):
        return [payload["type"] for payload in self.for_user(user_id)]


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2024, 3, 1, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def publisher(monkeypatch):
    recorder = RecordingPublisher()
    monkeypatch.setattr(websocket_manager, "publish", recorder)
    return recorder


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifications(db, publisher):
    return NotificationService(db, publisher=publisher)


@pytest.fixture
def service(db, notifications, clock):
    return TaskService(db, notifications=notifications, clock=clock)


def make_user(db, username, role, full_name, password="secret123"):
    return UserRepository(db).create(
        full_name=full_name,
        username=username,
        hashed_password=hash_password(password),
        role=role.value,
    )


@pytest.fixture
def manager(db):
    return make_user(db, "maria", UserRole.MANAGER, "Maria Manager")


@pytest.fixture
def employee(db):
    return make_user(db, "eve", UserRole.EMPLOYEE, "Eve Employee")


@pytest.fixture
def other_employee(db):
    return make_user(db, "oscar", UserRole.EMPLOYEE, "Oscar Other")


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """Build bearer headers for a user"""
    return auth_headers


@pytest.fixture
def user_factory(db):
    def factory(username, role=UserRole.EMPLOYEE, full_name=None, password="secret123"):
        return make_user(db, username, role, full_name or username.title(), password)
    return factory
