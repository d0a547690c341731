from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base, UTCDateTime, utcnow


class MembershipLevel(str, enum.Enum):
    STUDENT = "Student"
    ASSOCIATE = "Associate"
    FELLOW = "Fellow"
    HONORARY = "Honorary"


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


def default_roles() -> list[str]:
    return [Role.USER.value]


def default_preferences() -> dict[str, Any]:
    return {
        "notifications": {"email": True, "push": True, "sms": False},
        "language": "en",
        "timezone": "Africa/Lagos",
    }


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    membership_id: Mapped[str | None] = mapped_column(
        String(32), unique=True, nullable=True, index=True
    )
    membership_level: Mapped[MembershipLevel] = mapped_column(
        Enum(MembershipLevel), default=MembershipLevel.ASSOCIATE
    )
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSON, default=default_preferences)

    roles: Mapped[list[str]] = mapped_column(JSON, default=default_roles)

    is_active: Mapped[bool] = mapped_column(default=True)
    is_email_verified: Mapped[bool] = mapped_column(default=False)

    # Single-use tokens; both halves of a pair are cleared together
    email_verification_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_verification_expires: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    password_reset_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Account lockout
    failed_login_attempts: Mapped[int] = mapped_column(default=0)
    locked_until: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, server_default=func.now()
    )

    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(  # noqa: F821
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="RefreshToken.created_at",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
