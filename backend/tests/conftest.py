"""Shared test fixtures.

Each test gets its own in-memory SQLite database, so tests never pollute
each other. Settings are pinned through the environment before any app
module is imported (cheap bcrypt rounds, notifications off).
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["NOTIFICATION_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.core.database import Base, get_db
from backend.app.core.security import get_password_hash
from backend.app.core.tokens import create_access_token
from backend.app.main import app
from backend.app.middleware.rate_limit import auth_limiter, limit_auth_attempts
from backend.app.models.portal import User

PASSWORD = "Abcdef1!"


# ─── Database ────────────────────────────────────────────────────────────────


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _enable_fks(dbapi_connection: object, _record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session, with rate limiting off."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[limit_auth_attempts] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    auth_limiter.reset()


# ─── Accounts ────────────────────────────────────────────────────────────────


def make_user(
    db: Session,
    *,
    email: str = "ada@x.com",
    password: str = PASSWORD,
    name: str = "Ada",
    phone: str = "08011112222",
    membership_id: str | None = "ICAN/2024/00001",
    **fields: object,
) -> User:
    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
        phone=phone,
        membership_id=membership_id,
        **fields,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def member(db: Session) -> User:
    return make_user(db)


@pytest.fixture()
def member_token(member: User) -> str:
    return create_access_token(subject=str(member.id))


def auth(token: str) -> dict[str, str]:
    """Return Authorization header dict."""
    return {"Authorization": f"Bearer {token}"}
