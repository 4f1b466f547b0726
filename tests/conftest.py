# Pytest configuration for API tests.
# Forces a local SQLite DB, disables Redis, and wires the JWT secret for deterministic runs.
import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Test-time environment: local SQLite DB, Redis disabled, predictable JWT secret
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SENDGRID_API_KEY", "")

import sys
# Ensure the repo root is on sys.path so 'estatefinder' resolves when running pytest from anywhere
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from estatefinder.main import app  # noqa: E402
from estatefinder.db import Base, SessionLocal, engine  # noqa: E402
from estatefinder import models  # noqa: E402
from estatefinder.routes.auth import hash_password  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_db() -> Iterator[None]:
    """
    Session-level database bootstrap using a local SQLite file.

    Drops and recreates schema once per test session to ensure a clean slate.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_db() -> Iterator[None]:
    """
    Function-level isolation: drop and recreate schema before each test.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """
    FastAPI TestClient bound to the application for HTTP-level tests.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_token(client: TestClient) -> str:
    """
    Admins cannot self-register; insert one directly and log in through the API.
    """
    db = SessionLocal()
    try:
        db.add(
            models.User(
                email="admin@example.com",
                password_hash=hash_password("adminpass123"),
                first_name="Ada",
                last_name="Admin",
                role="admin",
            )
        )
        db.commit()
    finally:
        db.close()
    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass123"})
    assert r.status_code == 200, r.text
    return r.json()["token"]
