from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user, get_optional_user
from backend.app.core.config import settings
from backend.app.core.database import get_db
from backend.app.middleware.rate_limit import client_ip, limit_auth_attempts
from backend.app.models.portal import User
from backend.app.schemas.auth import (
    AuthData,
    AuthOut,
    ChangePasswordIn,
    ForgotPasswordIn,
    ForgotPasswordOut,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    TokenData,
    TokenOut,
    VerifyEmailIn,
)
from backend.app.schemas.common import MessageOut
from backend.app.schemas.user import SessionData, SessionOut, UserOut
from backend.app.services import auth as auth_service
from backend.app.services.notification_service import (
    send_email_verification,
    send_password_changed,
    send_password_reset,
    send_welcome,
)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)


def _auth_out(message: str, result: auth_service.AuthResult) -> AuthOut:
    return AuthOut(
        message=message,
        data=AuthData(
            user=UserOut.model_validate(result.user),
            token=result.access_token,
            refresh_token=result.refresh_token,
        ),
    )


# ─── Sign-in ────────────────────────────────────────────────────────────────


@router.post(
    "/register",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_auth_attempts)],
)
def register(
    body: RegisterIn,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> AuthOut:
    result = auth_service.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        phone=body.phone,
        membership_id=body.membership_id,
        ip_address=client_ip(request),
    )
    background_tasks.add_task(
        send_welcome, result.user.email, result.user.name, result.user.membership_id
    )
    if result.verification_token:
        background_tasks.add_task(
            send_email_verification,
            result.user.email,
            result.user.name,
            result.verification_token,
        )
    return _auth_out("User registered successfully", result)


@router.post("/login", response_model=AuthOut, dependencies=[Depends(limit_auth_attempts)])
def login(
    body: LoginIn,
    request: Request,
    db: Session = Depends(get_db),
) -> AuthOut:
    result = auth_service.login(
        db, email=body.email, password=body.password, ip_address=client_ip(request)
    )
    return _auth_out("Login successful", result)


@router.post("/refresh", response_model=TokenOut)
def refresh_access_token(
    body: RefreshIn | None = None,
    db: Session = Depends(get_db),
) -> TokenOut:
    token = auth_service.refresh(db, refresh_token=body.refresh_token if body else None)
    return TokenOut(message="Token refreshed successfully", data=TokenData(token=token))


@router.post("/logout", response_model=MessageOut)
def logout(
    body: RefreshIn | None = None,
    db: Session = Depends(get_db),
) -> MessageOut:
    """Invalidate the supplied refresh token. Always succeeds."""
    auth_service.logout(db, refresh_token=body.refresh_token if body else None)
    return MessageOut(message="Logged out successfully")


@router.get("/session", response_model=SessionOut)
def read_session(current_user: User | None = Depends(get_optional_user)) -> SessionOut:
    """Report who, if anyone, the bearer token belongs to. Never 401s."""
    if current_user is None:
        return SessionOut(message="Not signed in", data=SessionData(authenticated=False))
    return SessionOut(
        message="Signed in",
        data=SessionData(authenticated=True, user=UserOut.model_validate(current_user)),
    )


# ─── Password recovery ──────────────────────────────────────────────────────


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordOut,
    response_model_exclude_none=True,
    dependencies=[Depends(limit_auth_attempts)],
)
def forgot_password(
    body: ForgotPasswordIn,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> ForgotPasswordOut:
    """Same response whether or not the email is registered."""
    reset = auth_service.forgot_password(
        db, email=body.email, ip_address=client_ip(request)
    )
    out = ForgotPasswordOut(message=FORGOT_PASSWORD_MESSAGE)
    if reset is not None:
        background_tasks.add_task(
            send_password_reset, reset.user.email, reset.user.name, reset.token
        )
        if settings.is_development:
            out.reset_token = reset.token
    return out


@router.post(
    "/reset-password",
    response_model=MessageOut,
    dependencies=[Depends(limit_auth_attempts)],
)
def reset_password(
    body: ResetPasswordIn,
    request: Request,
    db: Session = Depends(get_db),
) -> MessageOut:
    auth_service.reset_password(
        db,
        token=body.token,
        new_password=body.new_password,
        ip_address=client_ip(request),
    )
    return MessageOut(message="Password reset successfully")


@router.post("/change-password", response_model=MessageOut)
def change_password(
    body: ChangePasswordIn,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageOut:
    """Change own password; every refresh token is revoked."""
    auth_service.change_password(
        db,
        user=current_user,
        current_password=body.current_password,
        new_password=body.new_password,
        ip_address=client_ip(request),
    )
    background_tasks.add_task(send_password_changed, current_user.email, current_user.name)
    return MessageOut(message="Password changed successfully. Please log in again.")


# ─── Email verification ─────────────────────────────────────────────────────


@router.post("/verify-email", response_model=MessageOut)
def verify_email(body: VerifyEmailIn, db: Session = Depends(get_db)) -> MessageOut:
    auth_service.verify_email(db, token=body.token)
    return MessageOut(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageOut)
def resend_verification(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageOut:
    token = auth_service.issue_email_verification(db, user=current_user)
    background_tasks.add_task(
        send_email_verification, current_user.email, current_user.name, token
    )
    return MessageOut(message="Verification email sent")
