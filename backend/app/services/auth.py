"""Authentication flows: register, login, refresh, logout, password reset.

Unlike the CRUD services, every function here commits its own transaction.
Several flows must persist state *and* fail (a wrong password still bumps the
lockout counter), so the commit cannot be left to the endpoint.

Errors are raised as the typed failures in ``backend.app.core.exceptions``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.database import utcnow
from backend.app.core.exceptions import (
    AccountInactiveError,
    AccountLockedError,
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    TokenExpiredError,
    TokenInvalidError,
)
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.tokens import (
    TokenKind,
    create_access_token,
    create_email_verification_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
    email_verification_expiry,
    password_reset_expiry,
    refresh_token_expiry,
)
from backend.app.models.portal import RefreshToken, User
from backend.app.services import lockout
from backend.app.services.audit import log_action

logger = logging.getLogger(__name__)

_MEMBERSHIP_ID_ATTEMPTS = 10
_INVALID_RESET_TOKEN = "Invalid or expired reset token"
_INVALID_VERIFICATION_TOKEN = "Invalid or expired verification token"


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str
    verification_token: str | None = None


@dataclass
class PasswordResetRequest:
    user: User
    token: str


# ─── Credential store helpers ───────────────────────────────────────────────


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def generate_membership_id(db: Session, year: int | None = None) -> str:
    """Allocate an unused ``ICAN/<year>/<5 digits>`` identifier."""
    year = year or utcnow().year
    for _ in range(_MEMBERSHIP_ID_ATTEMPTS):
        candidate = f"ICAN/{year}/{secrets.randbelow(100000):05d}"
        taken = db.query(User.id).filter(User.membership_id == candidate).first()
        if not taken:
            return candidate
    raise RuntimeError("Could not allocate a unique membership ID")


def issue_refresh_token(user: User, now: datetime | None = None) -> str:
    """Mint a refresh token and append it to the user's token set."""
    now = now or utcnow()
    token = create_refresh_token(str(user.id))
    user.refresh_tokens.append(
        RefreshToken(token=token, created_at=now, expires_at=refresh_token_expiry(now))
    )
    return token


def prune_expired_tokens(user: User, now: datetime | None = None) -> int:
    now = now or utcnow()
    expired = [t for t in user.refresh_tokens if t.is_expired(now)]
    for entry in expired:
        user.refresh_tokens.remove(entry)
    return len(expired)


def replace_password(user: User, new_password: str) -> None:
    """Rehash and sign out every device; the only place a hash is written after signup."""
    user.hashed_password = get_password_hash(new_password)
    user.refresh_tokens.clear()


# ─── Flows ──────────────────────────────────────────────────────────────────


def register(
    db: Session,
    *,
    name: str,
    email: str,
    password: str,
    phone: str,
    membership_id: str | None = None,
    ip_address: str | None = None,
) -> AuthResult:
    """Create an account and sign it in. Raises ConflictError on duplicates."""
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    if membership_id:
        membership_id = membership_id.strip().upper()
        taken = db.query(User.id).filter(User.membership_id == membership_id).first()
        if taken:
            raise ConflictError("Membership ID already exists")
    else:
        membership_id = generate_membership_id(db)

    user = User(
        id=uuid4(),
        name=name.strip(),
        email=email,
        hashed_password=get_password_hash(password),
        phone=phone.strip(),
        membership_id=membership_id,
        is_active=True,
        failed_login_attempts=0,
    )
    db.add(user)

    now = utcnow()
    access_token = create_access_token(str(user.id))
    refresh_token = issue_refresh_token(user, now)
    verification_token = create_email_verification_token(str(user.id))
    user.email_verification_token = verification_token
    user.email_verification_expires = email_verification_expiry(now)

    log_action(
        db,
        user_id=user.id,
        action="USER_REGISTERED",
        category="auth",
        subject=str(user.id),
        details={"email": email, "membership_id": membership_id},
        ip_address=ip_address,
    )
    # Nothing is flushed before this point, so a unique-constraint loss
    # against a concurrent signup surfaces here
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email or membership ID already exists")

    logger.info("Registered user %s (%s)", user.id, membership_id)
    return AuthResult(user, access_token, refresh_token, verification_token)


def login(
    db: Session,
    *,
    email: str,
    password: str,
    ip_address: str | None = None,
) -> AuthResult:
    """Verify credentials and issue a fresh token pair.

    Unknown email and wrong password raise the same InvalidCredentialsError.
    """
    email = normalize_email(email)
    user = get_user_by_email(db, email)

    if user is None:
        log_action(
            db,
            user_id=None,
            action="LOGIN_FAILED",
            category="auth",
            subject=email,
            details={"reason": "invalid_credentials"},
            ip_address=ip_address,
        )
        db.commit()
        raise InvalidCredentialsError()

    now = utcnow()

    if lockout.is_locked(user, now):
        log_action(
            db,
            user_id=user.id,
            action="LOGIN_BLOCKED",
            category="auth",
            subject=str(user.id),
            details={"reason": "account_locked"},
            ip_address=ip_address,
        )
        db.commit()
        logger.warning(
            "Login blocked for locked user %s (%d min remaining)",
            user.id,
            lockout.lock_remaining_minutes(user, now),
        )
        raise AccountLockedError()

    if not user.is_active:
        log_action(
            db,
            user_id=user.id,
            action="LOGIN_FAILED",
            category="auth",
            subject=str(user.id),
            details={"reason": "inactive_user"},
            ip_address=ip_address,
        )
        db.commit()
        raise AccountInactiveError()

    if not verify_password(password, user.hashed_password):
        locked_now = lockout.register_failed_attempt(user, now)
        if locked_now:
            log_action(
                db,
                user_id=user.id,
                action="ACCOUNT_LOCKED",
                category="auth",
                subject=str(user.id),
                details={"failed_attempts": user.failed_login_attempts},
                ip_address=ip_address,
            )
            logger.warning(
                "User %s locked after %d failed attempts",
                user.id,
                user.failed_login_attempts,
            )
        log_action(
            db,
            user_id=user.id,
            action="LOGIN_FAILED",
            category="auth",
            subject=str(user.id),
            details={"reason": "invalid_credentials"},
            ip_address=ip_address,
        )
        db.commit()
        raise InvalidCredentialsError()

    if user.failed_login_attempts or user.locked_until is not None:
        lockout.reset_failed_attempts(user)
    user.last_login = now

    pruned = prune_expired_tokens(user, now)
    access_token = create_access_token(str(user.id))
    refresh_token = issue_refresh_token(user, now)

    log_action(
        db,
        user_id=user.id,
        action="LOGIN_SUCCESS",
        category="auth",
        subject=str(user.id),
        details={"pruned_refresh_tokens": pruned},
        ip_address=ip_address,
    )
    db.commit()
    logger.info("User %s logged in", user.id)
    return AuthResult(user, access_token, refresh_token)


def refresh(db: Session, *, refresh_token: str | None) -> str:
    """Exchange a live refresh token for a new access token (no rotation)."""
    if not refresh_token:
        raise BadRequestError("Refresh token is required")

    try:
        payload = decode_token(refresh_token, TokenKind.REFRESH)
    except TokenExpiredError:
        raise TokenExpiredError("Refresh token expired")
    except TokenInvalidError:
        raise TokenInvalidError("Invalid refresh token")

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise TokenInvalidError("Invalid refresh token")

    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    stored = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user.id, RefreshToken.token == refresh_token)
        .first()
    )
    if stored is None:
        logger.warning("Rejected unrecognised refresh token for user %s", user.id)
        raise TokenInvalidError("Invalid refresh token")
    if stored.is_expired():
        raise TokenExpiredError("Refresh token expired")

    if not user.is_active:
        raise AccountInactiveError()

    access_token = create_access_token(str(user.id))
    log_action(
        db,
        user_id=user.id,
        action="TOKEN_REFRESHED",
        category="auth",
        subject=str(user.id),
    )
    db.commit()
    return access_token


def logout(db: Session, *, refresh_token: str | None) -> None:
    """Drop *refresh_token* from its owner's set. Silent when there is nothing to drop."""
    if not refresh_token:
        return

    stored = db.query(RefreshToken).filter(RefreshToken.token == refresh_token).first()
    if stored is None:
        return

    user = stored.user
    user.refresh_tokens.remove(stored)
    log_action(
        db,
        user_id=user.id,
        action="LOGOUT",
        category="auth",
        subject=str(user.id),
    )
    db.commit()
    logger.info("User %s logged out", user.id)


def forgot_password(
    db: Session,
    *,
    email: str,
    ip_address: str | None = None,
) -> PasswordResetRequest | None:
    """Store a fresh reset token for *email*, if such an account exists.

    Returns None for unknown addresses; callers must answer identically
    in both cases.
    """
    user = get_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None

    token = create_password_reset_token()
    user.password_reset_token = token
    user.password_reset_expires = password_reset_expiry()

    log_action(
        db,
        user_id=user.id,
        action="PASSWORD_RESET_REQUESTED",
        category="auth",
        subject=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    return PasswordResetRequest(user=user, token=token)


def reset_password(
    db: Session,
    *,
    token: str,
    new_password: str,
    ip_address: str | None = None,
) -> User:
    """Consume a reset token. The token and every refresh token are cleared."""
    try:
        decode_token(token, TokenKind.PASSWORD_RESET)
    except (TokenInvalidError, TokenExpiredError):
        raise BadRequestError(_INVALID_RESET_TOKEN)

    user = (
        db.query(User)
        .filter(
            User.password_reset_token == token,
            User.password_reset_expires > utcnow(),
        )
        .first()
    )
    if user is None:
        raise BadRequestError(_INVALID_RESET_TOKEN)

    replace_password(user, new_password)
    user.password_reset_token = None
    user.password_reset_expires = None

    log_action(
        db,
        user_id=user.id,
        action="PASSWORD_RESET",
        category="auth",
        subject=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    logger.info("Password reset for user %s", user.id)
    return user


def change_password(
    db: Session,
    *,
    user: User,
    current_password: str,
    new_password: str,
    ip_address: str | None = None,
) -> User:
    """Authenticated password change; signs out every device."""
    if not verify_password(current_password, user.hashed_password):
        raise BadRequestError("Current password is incorrect")
    if verify_password(new_password, user.hashed_password):
        raise BadRequestError("New password must be different from current password")

    replace_password(user, new_password)

    log_action(
        db,
        user_id=user.id,
        action="PASSWORD_CHANGED",
        category="auth",
        subject=str(user.id),
        ip_address=ip_address,
    )
    db.commit()
    logger.info("Password changed for user %s", user.id)
    return user


def verify_email(db: Session, *, token: str) -> User:
    try:
        payload = decode_token(token, TokenKind.EMAIL_VERIFICATION)
    except (TokenInvalidError, TokenExpiredError):
        raise BadRequestError(_INVALID_VERIFICATION_TOKEN)

    user = (
        db.query(User)
        .filter(
            User.email_verification_token == token,
            User.email_verification_expires > utcnow(),
        )
        .first()
    )
    if user is None or str(user.id) != payload["sub"]:
        raise BadRequestError(_INVALID_VERIFICATION_TOKEN)

    user.is_email_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None

    log_action(
        db,
        user_id=user.id,
        action="EMAIL_VERIFIED",
        category="auth",
        subject=str(user.id),
    )
    db.commit()
    return user


def issue_email_verification(db: Session, *, user: User) -> str:
    """Replace any outstanding verification token with a new one."""
    if user.is_email_verified:
        raise BadRequestError("Email is already verified")

    token = create_email_verification_token(str(user.id))
    user.email_verification_token = token
    user.email_verification_expires = email_verification_expiry()
    db.commit()
    return token


def prune_expired_refresh_tokens(db: Session, *, now: datetime | None = None) -> int:
    """Delete every expired refresh-token row across all accounts."""
    now = now or utcnow()
    removed = (
        db.query(RefreshToken)
        .filter(RefreshToken.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info("Pruned %d expired refresh tokens", removed)
    return removed
