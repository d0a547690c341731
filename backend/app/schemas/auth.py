from __future__ import annotations

from pydantic import Field, field_validator

from backend.app.core.security import validate_password_strength
from backend.app.schemas.common import (
    MEMBERSHIP_ID_RE,
    CamelModel,
    MessageOut,
    normalize_email_field,
    validate_phone_field,
)
from backend.app.schemas.user import UserOut


def _validate_pw(v: str, *, require_special: bool) -> str:
    error = validate_password_strength(v, require_special=require_special)
    if error:
        raise ValueError(error)
    return v


# ─── Requests ────────────────────────────────────────────────────────────────


class RegisterIn(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: str
    password: str = Field(..., max_length=128)
    phone: str
    membership_id: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be between 2 and 100 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email_field(v)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v, require_special=True)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        return validate_phone_field(v)

    @field_validator("membership_id")
    @classmethod
    def check_membership_id(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not MEMBERSHIP_ID_RE.match(v):
            raise ValueError(
                "Membership ID format should be ICAN/YYYY/XXX (e.g., ICAN/2024/001)"
            )
        return v.upper()


class LoginIn(CamelModel):
    email: str
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email_field(v)


class RefreshIn(CamelModel):
    refresh_token: str | None = None


class ForgotPasswordIn(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalize_email_field(v)


class ResetPasswordIn(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)

    @field_validator("new_password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v, require_special=False)


class ChangePasswordIn(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)

    @field_validator("new_password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v, require_special=False)


class VerifyEmailIn(CamelModel):
    token: str = Field(..., min_length=1)


# ─── Responses ───────────────────────────────────────────────────────────────


class AuthData(CamelModel):
    user: UserOut
    token: str
    refresh_token: str


class AuthOut(MessageOut):
    data: AuthData


class TokenData(CamelModel):
    token: str


class TokenOut(MessageOut):
    data: TokenData


class ForgotPasswordOut(MessageOut):
    reset_token: str | None = None
