from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.models.portal import AuditLog

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    *,
    user_id: UUID | None,
    action: str,
    category: str,
    subject: str,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction.

    Nothing is committed here. Failed-login rows must land in the same commit
    as the lockout counter they explain.
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        category=category,
        subject=subject,
        details=details,
        ip_address=ip_address,
    )
    db.add(entry)
    logger.debug("audit %s %s/%s user=%s", action, category, subject, user_id)
    return entry
