"""Tests for /api/v1/user self-service routes."""

from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.app.core.tokens import create_refresh_token
from backend.app.models.portal import AuditLog, RefreshToken, User
from backend.app.services.auth import issue_refresh_token
from backend.tests.conftest import auth

BASE = "/api/v1/user"


def test_read_profile(client: TestClient, member: User, member_token: str) -> None:
    resp = client.get(f"{BASE}/profile", headers=auth(member_token))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] == "ada@x.com"
    assert data["membershipId"] == "ICAN/2024/00001"
    assert data["membershipLevel"] == "Associate"
    assert data["preferences"]["language"] == "en"
    assert "hashedPassword" not in data


class TestUpdateProfile:
    def test_updates_fields_and_audits(
        self, client: TestClient, db: Session, member: User, member_token: str
    ) -> None:
        resp = client.put(
            f"{BASE}/profile",
            json={"name": "Ada Lovelace", "phone": "+2348031234567", "address": {"city": "Lagos"}},
            headers=auth(member_token),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["name"] == "Ada Lovelace"
        assert data["phone"] == "+2348031234567"
        assert data["address"] == {"city": "Lagos"}

        entry = db.query(AuditLog).filter(AuditLog.action == "PROFILE_UPDATED").one()
        assert entry.details["name"] == {"old": "Ada", "new": "Ada Lovelace"}

    def test_address_merges(
        self, client: TestClient, db: Session, member: User, member_token: str
    ) -> None:
        client.put(
            f"{BASE}/profile", json={"address": {"city": "Lagos"}}, headers=auth(member_token)
        )
        resp = client.put(
            f"{BASE}/profile",
            json={"address": {"postalCode": "100001"}},
            headers=auth(member_token),
        )
        assert resp.json()["data"]["address"] == {"city": "Lagos", "postalCode": "100001"}
        db.refresh(member)
        assert member.address == {"city": "Lagos", "postalCode": "100001"}

    def test_email_cannot_be_changed(
        self, client: TestClient, member_token: str
    ) -> None:
        resp = client.put(
            f"{BASE}/profile", json={"email": "other@x.com"}, headers=auth(member_token)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["email"] == "ada@x.com"

    def test_invalid_phone(self, client: TestClient, member_token: str) -> None:
        resp = client.put(f"{BASE}/profile", json={"phone": "12345"}, headers=auth(member_token))
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "phone"


def test_update_preferences_merges_over_defaults(
    client: TestClient, member_token: str
) -> None:
    resp = client.post(
        f"{BASE}/preferences",
        json={"notifications": {"sms": True}, "language": "fr"},
        headers=auth(member_token),
    )
    assert resp.status_code == 200
    prefs = resp.json()["data"]
    assert prefs["language"] == "fr"
    assert prefs["notifications"] == {"email": True, "push": True, "sms": True}
    assert prefs["timezone"] == "Africa/Lagos"


def test_activity(client: TestClient, member_token: str) -> None:
    resp = client.get(f"{BASE}/activity", headers=auth(member_token))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["lastLogin"] is None
    assert data["accountCreated"] is not None


def test_deactivate_account(
    client: TestClient, db: Session, member: User, member_token: str
) -> None:
    issue_refresh_token(member)
    db.commit()
    stored = member.refresh_tokens[0].token

    resp = client.delete(f"{BASE}/account", headers=auth(member_token))
    assert resp.status_code == 200

    db.expire_all()
    user = db.get(User, member.id)
    assert user is not None
    assert user.is_active is False
    assert db.query(RefreshToken).count() == 0

    assert client.get(f"{BASE}/profile", headers=auth(member_token)).status_code == 401
    resp = client.post("/api/v1/auth/refresh", json={"refreshToken": stored})
    assert resp.status_code == 401


def test_refresh_token_is_not_an_access_token(
    client: TestClient, member: User
) -> None:
    token = create_refresh_token(str(member.id))
    assert client.get(f"{BASE}/activity", headers=auth(token)).status_code == 401
