"""Staff routes for looking after member accounts.

Moderators can look up and unlock accounts; only admins can change roles.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_active_admin, get_current_moderator
from backend.app.core.database import get_db
from backend.app.models.portal import User
from backend.app.schemas.user import ProfileOut, RolesIn, UserOut
from backend.app.services.user_management import get_member, set_roles, unlock_account

router = APIRouter()


@router.get("/users/{user_id}", response_model=ProfileOut)
def read_member(
    user_id: UUID,
    db: Session = Depends(get_db),
    _staff: User = Depends(get_current_moderator),
) -> ProfileOut:
    user = get_member(db, user_id)
    return ProfileOut(message="User retrieved", data=UserOut.model_validate(user))


@router.post("/users/{user_id}/unlock", response_model=ProfileOut)
def unlock_member(
    user_id: UUID,
    db: Session = Depends(get_db),
    staff: User = Depends(get_current_moderator),
) -> ProfileOut:
    user = unlock_account(db, user=get_member(db, user_id), actor=staff)
    db.commit()
    db.refresh(user)
    return ProfileOut(message="Account unlocked", data=UserOut.model_validate(user))


@router.put("/users/{user_id}/roles", response_model=ProfileOut)
def update_member_roles(
    user_id: UUID,
    body: RolesIn,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_active_admin),
) -> ProfileOut:
    user = set_roles(db, user=get_member(db, user_id), roles=body.roles, actor=admin)
    db.commit()
    db.refresh(user)
    return ProfileOut(message="Roles updated", data=UserOut.model_validate(user))
