# backend/app/models/portal.py: aggregate import point
#
# Importing this module registers every mapped class, so string-based
# relationships resolve regardless of which model a caller imports first.

from backend.app.models.user import (
    MembershipLevel,
    Role,
    User,
    default_preferences,
    default_roles,
)
from backend.app.models.refresh_token import RefreshToken
from backend.app.models.audit import AuditLog

__all__ = [
    "MembershipLevel",
    "Role",
    "User",
    "default_preferences",
    "default_roles",
    "RefreshToken",
    "AuditLog",
]
