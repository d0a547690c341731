"""Tests for background workers and outbound notifications."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import Session, sessionmaker

from backend.app.core import database
from backend.app.core.config import settings
from backend.app.core.database import utcnow
from backend.app.models.portal import RefreshToken, User
from backend.app.services.email_service import EmailService, html_to_text
from backend.app.services.notification_service import (
    NotificationService,
    NotificationType,
    frontend_link,
    send_welcome,
)
from backend.app.workers.tasks.cleanup import prune_expired_refresh_tokens
from backend.app.workers.tasks.notifications import send_notification


# ─── Refresh-token sweep ────────────────────────────────────────────────────


def test_sweep_removes_only_expired_rows(
    db: Session, session_factory: sessionmaker, member: User, monkeypatch
) -> None:
    now = utcnow()
    member.refresh_tokens.append(
        RefreshToken(token="old", created_at=now - timedelta(days=8), expires_at=now - timedelta(days=1))
    )
    member.refresh_tokens.append(
        RefreshToken(token="new", created_at=now, expires_at=now + timedelta(days=7))
    )
    db.commit()

    monkeypatch.setattr(database, "SessionLocal", session_factory)
    assert prune_expired_refresh_tokens() == {"removed": 1}

    db.expire_all()
    assert [t.token for t in db.query(RefreshToken).all()] == ["new"]


def test_sweep_with_nothing_to_do(session_factory: sessionmaker, monkeypatch) -> None:
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    assert prune_expired_refresh_tokens() == {"removed": 0}


# ─── Notifications ──────────────────────────────────────────────────────────


class TestNotificationService:
    def test_renders_template(self) -> None:
        email = MagicMock(spec=EmailService)
        email.send.return_value = True
        ok = NotificationService(email=email).send(
            NotificationType.PASSWORD_CHANGED, "ada@x.com", name="Ada"
        )
        assert ok is True
        kwargs = email.send.call_args.kwargs
        assert kwargs["to"] == "ada@x.com"
        assert kwargs["subject"] == "Your password was changed"
        assert "Hello Ada" in kwargs["body_html"]

    def test_welcome_carries_membership_id(self) -> None:
        with patch("backend.app.services.notification_service.EmailService") as email_cls:
            email_cls.return_value.send.return_value = True
            assert send_welcome("ada@x.com", "Ada", "ICAN/2026/00042") is True
        kwargs = email_cls.return_value.send.call_args.kwargs
        assert kwargs["subject"] == "Welcome to the ICAN member portal"
        assert "Welcome, Ada" in kwargs["body_html"]
        assert "ICAN/2026/00042" in kwargs["body_html"]

    def test_link_points_at_frontend(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "FRONTEND_URL", "https://portal.example.org/")
        assert frontend_link("reset-password", "abc") == (
            "https://portal.example.org/reset-password?token=abc"
        )

    def test_disabled_delivery_is_skipped(self) -> None:
        with patch("backend.app.services.email_service.smtplib.SMTP") as smtp:
            assert EmailService().send("ada@x.com", "Hi", "<p>Hi</p>") is False
        smtp.assert_not_called()


class TestEmailService:
    def test_message_has_plain_and_html_parts(self) -> None:
        msg = EmailService(from_addr="portal@x.com").build_message(
            "ada@x.com", "Hi", "<p>Hello <b>Ada</b></p>"
        )
        assert msg["From"] == "portal@x.com"
        assert [part.get_content_type() for part in msg.get_payload()] == [
            "text/plain",
            "text/html",
        ]

    def test_html_to_text(self) -> None:
        assert html_to_text("<p>Hello</p>") == "Hello"

    def test_smtp_failure_returns_false(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "NOTIFICATION_ENABLED", True)
        with patch(
            "backend.app.services.email_service.smtplib.SMTP",
            side_effect=OSError("connection refused"),
        ):
            assert EmailService(from_addr="portal@x.com").send("ada@x.com", "Hi", "<p>Hi</p>") is False


class TestSendNotificationTask:
    def test_unknown_type(self) -> None:
        result = send_notification("NOPE", "ada@x.com", {})
        assert result["status"] == "error"

    @pytest.mark.parametrize(("delivered", "status"), [(True, "sent"), (False, "skipped")])
    def test_dispatches_to_service(self, delivered: bool, status: str) -> None:
        with patch(
            "backend.app.services.notification_service.NotificationService.send",
            return_value=delivered,
        ) as send:
            result = send_notification("PASSWORD_CHANGED", "ada@x.com", {"name": "Ada"})
        assert result == {"status": status}
        send.assert_called_once_with(
            NotificationType.PASSWORD_CHANGED, "ada@x.com", name="Ada"
        )
