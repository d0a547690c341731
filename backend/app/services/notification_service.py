"""Template-based notification service."""

from __future__ import annotations

import logging
from enum import Enum

from backend.app.core.config import settings
from backend.app.services.email_service import EmailService

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    WELCOME = "WELCOME"
    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"


_TEMPLATES: dict[NotificationType, dict[str, str]] = {
    NotificationType.WELCOME: {
        "subject": "Welcome to the ICAN member portal",
        "body": (
            "<h2>Welcome, {name}</h2>"
            "<p>Your membership ID is <strong>{membership_id}</strong>.</p>"
        ),
    },
    NotificationType.EMAIL_VERIFICATION: {
        "subject": "Confirm your email address",
        "body": (
            "<h2>Confirm your email</h2>"
            "<p>Hello {name}, please confirm your address by following "
            '<a href="{link}">this link</a>. It expires in {hours} hours.</p>'
        ),
    },
    NotificationType.PASSWORD_RESET: {
        "subject": "Password reset instructions",
        "body": (
            "<h2>Reset your password</h2>"
            "<p>Hello {name}, use <a href=\"{link}\">this link</a> to choose a "
            "new password. It expires in {minutes} minutes. If you did not "
            "request a reset you can ignore this email.</p>"
        ),
    },
    NotificationType.PASSWORD_CHANGED: {
        "subject": "Your password was changed",
        "body": (
            "<h2>Password changed</h2>"
            "<p>Hello {name}, your password was just changed and every other "
            "session was signed out.</p>"
        ),
    },
}


def frontend_link(path: str, token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/{path.lstrip('/')}?token={token}"


class NotificationService:
    """Send typed notifications using predefined templates."""

    def __init__(self, email: EmailService | None = None) -> None:
        self._email = email or EmailService()

    def send(
        self,
        notification_type: NotificationType,
        recipient_email: str,
        **kwargs: str,
    ) -> bool:
        """Render the template for *notification_type* and send via email."""
        template = _TEMPLATES.get(notification_type)
        if template is None:
            logger.error("Unknown notification type: %s", notification_type)
            return False

        subject = template["subject"].format(**kwargs)
        body = template["body"].format(**kwargs)
        return self._email.send(to=recipient_email, subject=subject, body_html=body)


def send_welcome(recipient_email: str, name: str, membership_id: str) -> bool:
    return NotificationService().send(
        NotificationType.WELCOME,
        recipient_email,
        name=name,
        membership_id=membership_id,
    )


def send_password_reset(recipient_email: str, name: str, token: str) -> bool:
    return NotificationService().send(
        NotificationType.PASSWORD_RESET,
        recipient_email,
        name=name,
        link=frontend_link("reset-password", token),
        minutes=str(settings.PASSWORD_RESET_EXPIRE_MINUTES),
    )


def send_email_verification(recipient_email: str, name: str, token: str) -> bool:
    return NotificationService().send(
        NotificationType.EMAIL_VERIFICATION,
        recipient_email,
        name=name,
        link=frontend_link("verify-email", token),
        hours=str(settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
    )


def send_password_changed(recipient_email: str, name: str) -> bool:
    return NotificationService().send(
        NotificationType.PASSWORD_CHANGED, recipient_email, name=name
    )
