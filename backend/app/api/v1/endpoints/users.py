from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_user
from backend.app.core.database import get_db
from backend.app.models.portal import User
from backend.app.schemas.common import MessageOut
from backend.app.schemas.user import (
    ActivityData,
    ActivityOut,
    PreferencesIn,
    PreferencesOut,
    ProfileOut,
    ProfileUpdateIn,
    UserOut,
)
from backend.app.services.user_management import (
    activity_summary,
    deactivate_account,
    update_preferences,
    update_profile,
)

router = APIRouter()


@router.get("/profile", response_model=ProfileOut)
def read_profile(current_user: User = Depends(get_current_user)) -> ProfileOut:
    return ProfileOut(message="Profile retrieved", data=UserOut.model_validate(current_user))


@router.put("/profile", response_model=ProfileOut)
def edit_profile(
    body: ProfileUpdateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileOut:
    user = update_profile(
        db,
        user=current_user,
        name=body.name,
        phone=body.phone,
        profile_image=body.profile_image,
        address=body.address.model_dump(by_alias=True, exclude_none=True) if body.address else None,
        preferences=body.preferences.model_dump(by_alias=True, exclude_none=True) if body.preferences else None,
    )
    db.commit()
    db.refresh(user)
    return ProfileOut(message="Profile updated successfully", data=UserOut.model_validate(user))


@router.post("/preferences", response_model=PreferencesOut)
def edit_preferences(
    body: PreferencesIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesOut:
    user = update_preferences(
        db, user=current_user, updates=body.model_dump(by_alias=True, exclude_none=True)
    )
    db.commit()
    db.refresh(user)
    return PreferencesOut(message="Preferences updated successfully", data=user.preferences)


@router.get("/activity", response_model=ActivityOut)
def read_activity(current_user: User = Depends(get_current_user)) -> ActivityOut:
    return ActivityOut(
        message="Activity retrieved",
        data=ActivityData(**activity_summary(current_user)),
    )


@router.delete("/account", response_model=MessageOut)
def delete_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageOut:
    """Deactivate the caller's account. The record is kept."""
    deactivate_account(db, user=current_user)
    db.commit()
    return MessageOut(message="Account deactivated successfully")
