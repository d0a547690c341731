from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.app.core.database import get_db
from backend.app.core.exceptions import (
    AccountInactiveError,
    AuthError,
    ForbiddenError,
    TokenExpiredError,
    TokenInvalidError,
)
from backend.app.core.tokens import TokenKind, decode_token
from backend.app.models.portal import Role, User
from backend.app.services import lockout

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _resolve_user(db: Session, token: str) -> User:
    try:
        payload = decode_token(token, TokenKind.ACCESS)
    except TokenExpiredError:
        raise TokenExpiredError("Token expired")
    except TokenInvalidError:
        raise TokenInvalidError("Invalid token")

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise TokenInvalidError("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise TokenInvalidError("User not found")
    if not user.is_active:
        raise AccountInactiveError()
    if lockout.is_locked(user):
        raise TokenInvalidError("Account is temporarily locked")
    return user


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the bearer access token to an active, unlocked user.

    Read-only: the gate never changes account state.
    """
    if credentials is None or not credentials.credentials:
        raise TokenInvalidError("Access token required")

    user = _resolve_user(db, credentials.credentials)
    request.state.user_id = user.id
    return user


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User | None:
    """Like ``get_current_user`` but anonymous callers get ``None`` instead of 401.

    A token that fails any gate check is treated as no token at all.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        user = _resolve_user(db, credentials.credentials)
    except AuthError as exc:
        logger.debug("Optional auth ignored a bad token: %s", exc.message)
        return None
    request.state.user_id = user.id
    return user


def require_role(*roles: Role):
    """FastAPI dependency factory; passes when the user holds **any** listed role.

    Returns the authenticated ``User``::

        current_user = Depends(require_role(Role.ADMIN, Role.MODERATOR))
    """
    allowed = {role.value for role in roles}

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        held = set(current_user.roles or [Role.USER.value])
        if not held & allowed:
            logger.info(
                "User %s lacks roles %s", current_user.id, ", ".join(sorted(allowed))
            )
            raise ForbiddenError()
        return current_user

    return _checker


get_current_active_admin = require_role(Role.ADMIN)
get_current_moderator = require_role(Role.ADMIN, Role.MODERATOR)
