"""Tests for the bearer-token gate in front of protected routes."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.database import utcnow
from backend.app.core.tokens import (
    create_access_token,
    create_email_verification_token,
    create_refresh_token,
)
from backend.app.models.portal import User
from backend.tests.conftest import auth

PROTECTED = "/api/v1/user/profile"


def _message(resp) -> str:
    return resp.json()["message"]


def test_valid_token_reaches_handler(client: TestClient, member: User, member_token: str) -> None:
    resp = client.get(PROTECTED, headers=auth(member_token))
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == str(member.id)


def test_missing_header(client: TestClient) -> None:
    resp = client.get(PROTECTED)
    assert resp.status_code == 401
    assert _message(resp) == "Access token required"


def test_wrong_scheme(client: TestClient, member_token: str) -> None:
    resp = client.get(PROTECTED, headers={"Authorization": f"Basic {member_token}"})
    assert resp.status_code == 401
    assert _message(resp) == "Access token required"


def test_garbage_token(client: TestClient) -> None:
    resp = client.get(PROTECTED, headers=auth("garbage"))
    assert resp.status_code == 401
    assert _message(resp) == "Invalid token"


def test_expired_token(client: TestClient, member: User) -> None:
    token = create_access_token(str(member.id), expires_delta=timedelta(seconds=-5))
    resp = client.get(PROTECTED, headers=auth(token))
    assert resp.status_code == 401
    assert _message(resp) == "Token expired"


@pytest.mark.parametrize("factory", [create_refresh_token, create_email_verification_token])
def test_other_token_kinds_rejected(client: TestClient, member: User, factory) -> None:
    resp = client.get(PROTECTED, headers=auth(factory(str(member.id))))
    assert resp.status_code == 401
    assert _message(resp) == "Invalid token"


def test_non_uuid_subject(client: TestClient) -> None:
    resp = client.get(PROTECTED, headers=auth(create_access_token("not-a-uuid")))
    assert resp.status_code == 401
    assert _message(resp) == "Invalid token"


def test_unknown_user(client: TestClient, db: Session, member: User, member_token: str) -> None:
    db.delete(member)
    db.commit()
    resp = client.get(PROTECTED, headers=auth(member_token))
    assert resp.status_code == 401
    assert _message(resp) == "User not found"


def test_inactive_user(client: TestClient, db: Session, member: User, member_token: str) -> None:
    member.is_active = False
    db.commit()
    resp = client.get(PROTECTED, headers=auth(member_token))
    assert resp.status_code == 401
    assert _message(resp) == "Account is deactivated"


def test_locked_user(client: TestClient, db: Session, member: User, member_token: str) -> None:
    member.locked_until = utcnow() + timedelta(hours=1)
    member.failed_login_attempts = 5
    db.commit()
    resp = client.get(PROTECTED, headers=auth(member_token))
    assert resp.status_code == 401
    assert _message(resp) == "Account is temporarily locked"


def test_lapsed_lock_lets_request_through(
    client: TestClient, db: Session, member: User, member_token: str
) -> None:
    member.locked_until = utcnow() - timedelta(minutes=1)
    db.commit()
    assert client.get(PROTECTED, headers=auth(member_token)).status_code == 200


def test_gate_never_changes_account_state(
    client: TestClient, db: Session, member: User, member_token: str
) -> None:
    member.failed_login_attempts = 3
    db.commit()

    client.get(PROTECTED, headers=auth("garbage"))
    client.get(PROTECTED, headers=auth(member_token))

    db.expire_all()
    user = db.get(User, member.id)
    assert user.failed_login_attempts == 3
    assert user.locked_until is None
    assert user.last_login is None
