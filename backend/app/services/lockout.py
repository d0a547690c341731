"""Per-account lockout after repeated failed logins.

``locked_until`` is the only lock state; "locked" is derived by comparing it
with the current time, so a lapsed lock needs no cleanup job. Only password
mismatches during login feed this policy.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from backend.app.core.config import settings
from backend.app.core.database import utcnow
from backend.app.models.portal import User


def is_locked(user: User, now: datetime | None = None) -> bool:
    return user.locked_until is not None and user.locked_until > (now or utcnow())


def lock_remaining_minutes(user: User, now: datetime | None = None) -> int:
    """Whole minutes (rounded up) until the lock lapses; 0 when unlocked."""
    now = now or utcnow()
    if user.locked_until is None or user.locked_until <= now:
        return 0
    return int((user.locked_until - now).total_seconds() // 60) + 1


def register_failed_attempt(user: User, now: datetime | None = None) -> bool:
    """Count one failed password check. Returns True if this attempt locked the account.

    A lock that has already lapsed starts a fresh window at 1 rather than
    continuing from the old count.
    """
    now = now or utcnow()

    if user.locked_until is not None and user.locked_until <= now:
        user.locked_until = None
        user.failed_login_attempts = 1
        return False

    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= settings.MAX_LOGIN_ATTEMPTS and not is_locked(user, now):
        user.locked_until = now + timedelta(minutes=settings.LOCKOUT_MINUTES)
        return True
    return False


def reset_failed_attempts(user: User) -> None:
    user.failed_login_attempts = 0
    user.locked_until = None
