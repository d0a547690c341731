"""Outbound member emails sent from a worker instead of the request thread."""

from __future__ import annotations

import logging

from backend.app.workers.celery_app import celery

logger = logging.getLogger(__name__)


@celery.task(name="backend.app.workers.tasks.notifications.send_notification")
def send_notification(
    notification_type: str,
    recipient_email: str,
    template_kwargs: dict | None = None,
) -> dict:
    """Render one member email by type name and hand it to SMTP.

    ``template_kwargs`` must be JSON-serialisable; tokens are passed already
    embedded in links.
    """
    from backend.app.services.notification_service import (
        NotificationService,
        NotificationType,
    )

    if notification_type not in NotificationType.__members__:
        logger.error("Dropping notification with unknown type %r", notification_type)
        return {"status": "error", "detail": f"Unknown type: {notification_type}"}

    delivered = NotificationService().send(
        NotificationType[notification_type], recipient_email, **(template_kwargs or {})
    )
    return {"status": "sent" if delivered else "skipped"}
