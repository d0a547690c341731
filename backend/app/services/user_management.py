"""Changes to member accounts, made by the member or by staff.

All mutations are audit-logged. This module does NOT call db.commit();
the caller (endpoint) is responsible for committing.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.exceptions import BadRequestError, NotFoundError
from backend.app.models.portal import Role, User, default_preferences
from backend.app.services import lockout
from backend.app.services.audit import log_action


def _merge(base: dict[str, Any] | None, updates: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge *updates* over *base*, recursing one level into dicts."""
    merged = dict(base or {})
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def update_preferences(db: Session, *, user: User, updates: dict[str, Any]) -> User:
    """Merge preference updates over the stored (or default) preferences."""
    if not updates:
        return user
    # Reassign so the JSON column is flagged dirty
    user.preferences = _merge(user.preferences or default_preferences(), updates)
    db.flush()
    log_action(
        db,
        user_id=user.id,
        action="PREFERENCES_UPDATED",
        category="profile",
        subject=str(user.id),
        details={"preferences": updates},
    )
    return user


def update_profile(
    db: Session,
    *,
    user: User,
    name: str | None = None,
    phone: str | None = None,
    profile_image: str | None = None,
    address: dict[str, Any] | None = None,
    preferences: dict[str, Any] | None = None,
) -> User:
    """Apply the supplied profile fields. Password and email are not editable here."""
    changes: dict[str, object] = {}

    if name is not None and name != user.name:
        changes["name"] = {"old": user.name, "new": name}
        user.name = name
    if phone is not None and phone != user.phone:
        changes["phone"] = {"old": user.phone, "new": phone}
        user.phone = phone
    if profile_image is not None and profile_image != user.profile_image:
        changes["profile_image"] = True
        user.profile_image = profile_image
    if address:
        user.address = _merge(user.address, address)
        changes["address"] = address

    if changes:
        db.flush()
        log_action(
            db,
            user_id=user.id,
            action="PROFILE_UPDATED",
            category="profile",
            subject=str(user.id),
            details=changes,
        )

    if preferences:
        update_preferences(db, user=user, updates=preferences)

    return user


def deactivate_account(db: Session, *, user: User) -> User:
    """Flip the active flag off and sign out every device. Never deletes the row."""
    user.is_active = False
    user.refresh_tokens.clear()
    db.flush()

    log_action(
        db,
        user_id=user.id,
        action="ACCOUNT_DEACTIVATED",
        category="profile",
        subject=str(user.id),
    )
    return user


def activity_summary(user: User) -> dict[str, Any]:
    return {
        "last_login": user.last_login,
        "account_created": user.created_at,
        "profile_updated": user.updated_at,
    }


# ─── Staff actions ──────────────────────────────────────────────────────────


def get_member(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def unlock_account(db: Session, *, user: User, actor: User) -> User:
    """Clear a login lockout ahead of its expiry."""
    was_locked = lockout.is_locked(user)
    lockout.reset_failed_attempts(user)
    db.flush()

    log_action(
        db,
        user_id=actor.id,
        action="ACCOUNT_UNLOCKED",
        category="admin",
        subject=str(user.id),
        details={"was_locked": was_locked},
    )
    return user


def set_roles(db: Session, *, user: User, roles: list[Role], actor: User) -> User:
    """Replace the user's role list. Every account keeps the base ``user`` role."""
    new_roles = sorted({Role.USER.value, *(role.value for role in roles)})
    if user.id == actor.id and Role.ADMIN.value not in new_roles:
        raise BadRequestError("Admins cannot remove their own admin role")

    old_roles = list(user.roles or [Role.USER.value])
    if new_roles == sorted(old_roles):
        return user

    user.roles = new_roles
    db.flush()

    log_action(
        db,
        user_id=actor.id,
        action="ROLES_CHANGED",
        category="admin",
        subject=str(user.id),
        details={"old": old_roles, "new": new_roles},
    )
    return user
