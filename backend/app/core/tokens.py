"""Signed, time-bounded tokens for the auth flows.

Four kinds share one format (HS256 JWT) but never one key: each kind is
signed with a key derived from ``SECRET_KEY`` and the kind name, and every
decode also checks the ``type`` claim. A refresh token therefore cannot be
replayed as an access token even if the claim check were skipped.
"""

from __future__ import annotations

import hashlib
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
    TokenKindMismatchError,
)

ALGORITHM = "HS256"


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password-reset"
    EMAIL_VERIFICATION = "email-verification"


# Password-reset tokens are looked up by stored value, not by subject
_SUBJECT_KINDS = {TokenKind.ACCESS, TokenKind.REFRESH, TokenKind.EMAIL_VERIFICATION}


def _lifetime(kind: TokenKind) -> timedelta:
    if kind is TokenKind.ACCESS:
        return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    if kind is TokenKind.REFRESH:
        return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    if kind is TokenKind.PASSWORD_RESET:
        return timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    return timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)


def _signing_key(kind: TokenKind) -> str:
    return hmac.new(
        settings.SECRET_KEY.encode(), kind.value.encode(), hashlib.sha256
    ).hexdigest()


def create_token(
    kind: TokenKind,
    subject: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token of *kind*. ``jti`` keeps every issued value unique."""
    if kind in _SUBJECT_KINDS and not subject:
        raise ValueError(f"{kind.value} tokens require a subject")
    now = datetime.now(timezone.utc)
    to_encode: dict[str, Any] = {
        "type": kind.value,
        "iat": now,
        "exp": now + (expires_delta if expires_delta is not None else _lifetime(kind)),
        "jti": uuid.uuid4().hex,
    }
    if subject is not None:
        to_encode["sub"] = subject
    return jwt.encode(to_encode, _signing_key(kind), algorithm=ALGORITHM)


def decode_token(token: str, kind: TokenKind) -> dict[str, Any]:
    """Verify *token* as *kind* and return its claims.

    Raises ``TokenExpiredError`` for a well-signed but lapsed token,
    ``TokenKindMismatchError`` when the type claim is wrong, and
    ``TokenInvalidError`` for everything else.
    """
    try:
        payload = jwt.decode(token, _signing_key(kind), algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise TokenInvalidError()

    if payload.get("type") != kind.value:
        raise TokenKindMismatchError()
    if kind in _SUBJECT_KINDS and not payload.get("sub"):
        raise TokenKindMismatchError()
    return payload


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    return create_token(TokenKind.ACCESS, subject, expires_delta)


def create_refresh_token(subject: str, expires_delta: timedelta | None = None) -> str:
    return create_token(TokenKind.REFRESH, subject, expires_delta)


def create_password_reset_token(expires_delta: timedelta | None = None) -> str:
    return create_token(TokenKind.PASSWORD_RESET, None, expires_delta)


def create_email_verification_token(
    subject: str, expires_delta: timedelta | None = None
) -> str:
    return create_token(TokenKind.EMAIL_VERIFICATION, subject, expires_delta)


def refresh_token_expiry(now: datetime | None = None) -> datetime:
    """Storage expiry for a refresh-token entry issued at *now*."""
    return (now or datetime.now(timezone.utc)) + _lifetime(TokenKind.REFRESH)


def password_reset_expiry(now: datetime | None = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + _lifetime(TokenKind.PASSWORD_RESET)


def email_verification_expiry(now: datetime | None = None) -> datetime:
    return (now or datetime.now(timezone.utc)) + _lifetime(TokenKind.EMAIL_VERIFICATION)
