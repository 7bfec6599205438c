"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Point settings at an in-memory SQLite database before any app import
  - Provide a fresh schema per test (StaticPool keeps one shared connection)
  - Provide a TestClient with get_db / get_password_policy overridden
  - Provide user factories and a login helper

Notes:
  - PASSWORD_HASH_ROUNDS is lowered so PBKDF2 does not dominate runtime
  - LOG_DIR points at a scratch directory so test runs leave no log/ behind
"""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="lunchdesk-test-logs-"))
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-session-cookies")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")

from datetime import datetime  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.password_policy import PasswordPolicy, get_password_policy, utc_now  # noqa: E402
from core.security import hash_password  # noqa: E402
from database import get_db, load_models  # noqa: E402
from models.user import User  # noqa: E402

DEFAULT_PASSWORD = "lunch2025"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    load_models().create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def policy():
    return PasswordPolicy()


@pytest.fixture
def make_user(db):
    def _make(
        username: str = "alice",
        password: str = DEFAULT_PASSWORD,
        role: str = "employee",
        *,
        must_change_password: bool = False,
        password_changed_at: Optional[datetime] = None,
        password_expiry_days: int = 120,
        is_active: bool = True,
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
            password_changed_at=password_changed_at or utc_now(),
            password_expiry_days=password_expiry_days,
            must_change_password=must_change_password,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def client(session_factory, policy):
    from main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_password_policy] = lambda: policy
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def login(client, username: str, password: str = DEFAULT_PASSWORD):
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()
