from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from backend.app.models.user import MembershipLevel, Role
from backend.app.schemas.common import CamelModel, MessageOut, validate_phone_field


class UserOut(CamelModel):
    """Public view of an account; secrets and lockout state never appear here."""

    id: UUID
    name: str
    email: str
    phone: str
    membership_id: str | None
    membership_level: MembershipLevel
    roles: list[Role] = Field(default_factory=lambda: [Role.USER])
    profile_image: str | None = None
    address: dict[str, Any] | None = None
    preferences: dict[str, Any] | None = None
    is_active: bool
    is_email_verified: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AddressIn(CamelModel):
    street: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)


class NotificationPreferencesIn(CamelModel):
    email: bool | None = None
    push: bool | None = None
    sms: bool | None = None


class PreferencesIn(CamelModel):
    notifications: NotificationPreferencesIn | None = None
    language: str | None = Field(None, min_length=2, max_length=10)
    timezone: str | None = Field(None, max_length=64)


class ProfileUpdateIn(CamelModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    phone: str | None = None
    profile_image: str | None = None
    address: AddressIn | None = None
    preferences: PreferencesIn | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return validate_phone_field(v) if v is not None else v


class ProfileOut(MessageOut):
    data: UserOut


class PreferencesOut(MessageOut):
    data: dict[str, Any]


class ActivityData(CamelModel):
    last_login: datetime | None
    account_created: datetime | None
    profile_updated: datetime | None


class ActivityOut(MessageOut):
    data: ActivityData


class RolesIn(CamelModel):
    roles: list[Role]


class SessionData(CamelModel):
    authenticated: bool
    user: UserOut | None = None


class SessionOut(MessageOut):
    data: SessionData
