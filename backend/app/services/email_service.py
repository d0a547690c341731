"""SMTP-based email sending service.

Delivery is off unless ``NOTIFICATION_ENABLED`` is set; callers treat a
``False`` return as "not sent" and carry on. Auth flows never fail because
a message could not be delivered.
"""

from __future__ import annotations

import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def html_to_text(body_html: str) -> str:
    return _TAG_RE.sub(" ", body_html).replace("  ", " ").strip()


class EmailService:
    """Send transactional emails via SMTP."""

    def __init__(self, from_addr: str | None = None) -> None:
        self._from = from_addr or settings.SMTP_FROM_ADDRESS or settings.SMTP_USERNAME

    def build_message(self, to: str, subject: str, body_html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._from
        msg["To"] = to
        # Plain part first so HTML-capable clients prefer the last one
        msg.attach(MIMEText(html_to_text(body_html), "plain"))
        msg.attach(MIMEText(body_html, "html"))
        return msg

    def send(self, to: str, subject: str, body_html: str) -> bool:
        """Send an HTML email. Returns ``True`` on success."""
        if not settings.NOTIFICATION_ENABLED:
            logger.info("Notifications disabled, skipping email to %s: %s", to, subject)
            return False

        msg = self.build_message(to, subject, body_html)
        try:
            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
                server.ehlo()
                if settings.SMTP_PORT != 25:
                    server.starttls()
                if settings.SMTP_USERNAME:
                    server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                server.sendmail(msg["From"], [to], msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to)
            return False
        logger.info("Email sent to %s: %s", to, subject)
        return True
