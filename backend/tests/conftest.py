import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_clock, get_db
from app.db.base import Base
from app.main import app
from app.store.memory import InMemoryTimetableStore

# Monday 2026-10-19 08:00 local time.
DEFAULT_NOW = datetime(2026, 10, 19, 8, 0)


class FakeClock:
    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    return InMemoryTimetableStore(page_size=2)


@pytest.fixture()
def db_session():
    engine = create_engine( #create isolated DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine) #this base contains all the SQLAlchemy models and creates the tables inside the in-memory db
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture() #test client
def client(clock):
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    engine.dispose()


def register_admin(client, email="admin@example.com", password="secret123", name="Admin User"):
    response = client.post("/api/auth/admin/register", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201
    return response.json()["data"]


def register_student(client, usn="1AB21CS001", password="secret123", name="Student User"):
    response = client.post("/api/auth/student/register", json={"usn": usn, "password": password, "name": name})
    assert response.status_code == 201
    return response.json()["data"]


def login_admin(client, email="admin@example.com", password="secret123"):
    response = client.post("/api/auth/admin/login", json={"email": email, "password": password})
    assert response.status_code == 200
    client.cookies.clear()
    return response.json()["data"]["access_token"]


def login_student(client, usn="1AB21CS001", password="secret123"):
    response = client.post("/api/auth/student/login", json={"usn": usn, "password": password})
    assert response.status_code == 200
    client.cookies.clear()
    return response.json()["data"]["access_token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    register_admin(client)
    return auth_header(login_admin(client))


@pytest.fixture()
def student_headers(client):
    register_student(client)
    return auth_header(login_student(client))
